"""Repository functions for users and profiles.

Provides account creation, lookup and owner updates. Profiles are never
deleted by the application.
"""

from __future__ import annotations

import re
import sqlite3
import uuid
from dataclasses import dataclass
from typing import Any, Literal

import structlog

from ielts_writing.core.bands import is_valid_band
from ielts_writing.core.errors import ProfileValidationError
from ielts_writing.core.prompts import utc_now
from ielts_writing.db.database import get_db

logger = structlog.get_logger(__name__)

Role = Literal["student", "teacher", "admin"]
ROLES: tuple[str, ...] = ("student", "teacher", "admin")
STAFF_ROLES: frozenset[str] = frozenset({"teacher", "admin"})

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")

MIN_PASSWORD_LENGTH = 8
MIN_AGE = 10
MAX_AGE = 100

UPDATABLE_FIELDS = (
    "full_name",
    "age",
    "address",
    "phone",
    "current_band",
    "target_band",
    "onboarded",
)


class DuplicateEmailError(Exception):
    """An account already exists for this email."""

    pass


@dataclass
class ProfileRecord:
    """Profile record from database."""

    user_id: str
    email: str
    full_name: str
    age: int | None
    address: str | None
    phone: str | None
    current_band: float
    target_band: float
    role: Role
    onboarded: bool
    created_at: str
    updated_at: str

    @property
    def is_staff(self) -> bool:
        """Teachers and admins manage the question bank."""
        return self.role in STAFF_ROLES

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "user_id": self.user_id,
            "email": self.email,
            "full_name": self.full_name,
            "age": self.age,
            "address": self.address,
            "phone": self.phone,
            "current_band": self.current_band,
            "target_band": self.target_band,
            "role": self.role,
            "onboarded": self.onboarded,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class UserRecord:
    """Login credentials for an account."""

    user_id: str
    email: str
    password_hash: str
    created_at: str


# =============================================================================
# VALIDATION
# =============================================================================


def validate_email(email: str) -> bool:
    """Validate email format."""
    return bool(EMAIL_PATTERN.match(email or ""))


def validate_registration(
    email: str,
    password: str,
    full_name: str,
    age: int | None,
    current_band: float,
    target_band: float,
) -> None:
    """Check registration fields.

    Raises:
        ProfileValidationError: With one message per offending field
    """
    errors: dict[str, str] = {}

    if not (full_name or "").strip():
        errors["full_name"] = "Full name is required."
    if not validate_email(email):
        errors["email"] = "Enter a valid email address."
    if len(password or "") < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
    if age is not None and not (MIN_AGE <= age <= MAX_AGE):
        errors["age"] = f"Age must be between {MIN_AGE} and {MAX_AGE}."
    if not is_valid_band(current_band):
        errors["current_band"] = "Select a valid band."
    if not is_valid_band(target_band):
        errors["target_band"] = "Select a valid band."
    elif target_band <= current_band:
        errors["target_band"] = "Target band must be higher than current band."

    if errors:
        raise ProfileValidationError(errors)


# =============================================================================
# WRITES
# =============================================================================


def create_account(
    email: str,
    password_hash: str,
    full_name: str,
    current_band: float,
    target_band: float,
    age: int | None = None,
    address: str | None = None,
    phone: str | None = None,
    role: Role = "student",
) -> ProfileRecord:
    """Insert a user and its profile in one transaction.

    Callers validate fields with validate_registration first.

    Raises:
        DuplicateEmailError: If the email is already registered
    """
    user_id = str(uuid.uuid4())
    now = utc_now()
    email = email.strip().lower()

    try:
        with get_db() as conn:
            conn.execute(
                "INSERT INTO users (user_id, email, password_hash, created_at) VALUES (?, ?, ?, ?)",
                (user_id, email, password_hash, now),
            )
            conn.execute(
                """
                INSERT INTO profiles (
                    user_id, email, full_name, age, address, phone,
                    current_band, target_band, role, onboarded,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    email,
                    full_name.strip(),
                    age,
                    address,
                    phone,
                    current_band,
                    target_band,
                    role,
                    1,
                    now,
                    now,
                ),
            )
    except sqlite3.IntegrityError as e:
        raise DuplicateEmailError(f"An account already exists for {email}") from e

    logger.info("profiles.created", user_id=user_id, role=role)
    return get_profile(user_id)


def update_profile(user_id: str, **changes: Any) -> ProfileRecord | None:
    """Apply owner edits to a profile.

    Only fields in UPDATABLE_FIELDS are written; role changes go through
    set_role. The target > current rule is not re-checked here.

    Returns:
        Updated ProfileRecord, or None if the profile doesn't exist
    """
    fields = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
    if fields:
        if "onboarded" in fields:
            fields["onboarded"] = int(bool(fields["onboarded"]))
        assignments = ", ".join(f"{name} = ?" for name in fields)
        with get_db() as conn:
            conn.execute(
                f"UPDATE profiles SET {assignments}, updated_at = ? WHERE user_id = ?",
                (*fields.values(), utc_now(), user_id),
            )
        logger.debug("profiles.updated", user_id=user_id, fields=sorted(fields))

    return get_profile(user_id)


def set_role(email: str, role: Role) -> ProfileRecord | None:
    """Change an account's role (administrative migration path).

    Returns:
        Updated ProfileRecord, or None if no profile has this email
    """
    if role not in ROLES:
        raise ValueError(f"role must be one of {ROLES}")

    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE profiles SET role = ?, updated_at = ? WHERE email = ?",
            (role, utc_now(), email.strip().lower()),
        )
        updated = cursor.rowcount

    if not updated:
        return None

    logger.info("profiles.role_changed", email=email, role=role)
    return get_profile_by_email(email)


# =============================================================================
# READS
# =============================================================================


def get_user_by_email(email: str) -> UserRecord | None:
    """Get login credentials by email."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE email = ?", (email.strip().lower(),)
        ).fetchone()

    if row is None:
        return None

    return UserRecord(
        user_id=row["user_id"],
        email=row["email"],
        password_hash=row["password_hash"],
        created_at=row["created_at"],
    )


def get_profile(user_id: str) -> ProfileRecord | None:
    """Get profile by user ID."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM profiles WHERE user_id = ?", (user_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def get_profile_by_email(email: str) -> ProfileRecord | None:
    """Get profile by email."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM profiles WHERE email = ?", (email.strip().lower(),)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def _row_to_record(row: sqlite3.Row) -> ProfileRecord:
    """Convert database row to ProfileRecord."""
    return ProfileRecord(
        user_id=row["user_id"],
        email=row["email"],
        full_name=row["full_name"],
        age=row["age"],
        address=row["address"],
        phone=row["phone"],
        current_band=float(row["current_band"]),
        target_band=float(row["target_band"]),
        role=row["role"],
        onboarded=bool(row["onboarded"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
