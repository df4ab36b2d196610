"""Enum types for database models."""

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    """Role of a user account."""

    USER = "user"
    ADMIN = "admin"


class UserStatus(str, enum.Enum):
    """Approval status of a user account."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
