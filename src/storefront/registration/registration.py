"""Pending registrations: one short-lived entry per email address.

A registration waits here between "send me a code" and "here is my code".
Entries are keyed by normalized email, so concurrent sign-ups for different
addresses never see each other, and expire after a configurable TTL.
"""

import hmac
import os
import secrets
from datetime import UTC, datetime, timedelta

import bcrypt
from protean.fields import DateTime, Integer, String

from storefront.domain import storefront

MAX_ATTEMPTS = 3
OTP_DIGITS = 6
DEFAULT_TTL_MINUTES = 10


def registration_ttl_minutes() -> int:
    return int(os.environ.get("REGISTRATION_TTL_MINUTES", DEFAULT_TTL_MINUTES))


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def generate_otp() -> str:
    return f"{secrets.randbelow(10**OTP_DIGITS):0{OTP_DIGITS}d}"


def hash_password(password: str) -> str:
    """bcrypt hash with an embedded per-password salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


@storefront.aggregate
class PendingRegistration:
    email = String(required=True, max_length=254)
    name = String(required=True, max_length=100)
    password_hash = String(required=True, max_length=128)
    otp = String(required=True, max_length=OTP_DIGITS)
    attempts = Integer(default=0, min_value=0)
    expires_at = DateTime(required=True)
    created_at = DateTime()

    @classmethod
    def start(cls, email, name, password, ttl_minutes=None):
        now = datetime.now(UTC)
        return cls(
            email=normalize_email(email),
            name=name.strip(),
            password_hash=hash_password(password),
            otp=generate_otp(),
            attempts=0,
            expires_at=now + timedelta(minutes=ttl_minutes or registration_ttl_minutes()),
            created_at=now,
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(UTC)) >= self.expires_at

    @property
    def attempts_remaining(self) -> int:
        return max(0, MAX_ATTEMPTS - self.attempts)

    def check_otp(self, otp: str) -> bool:
        """Compare a submitted code, counting the attempt when it is wrong."""
        if hmac.compare_digest(str(otp).strip(), self.otp):
            return True
        self.attempts += 1
        return False


@storefront.repository(part_of=PendingRegistration)
class PendingRegistrationRepository:
    def for_email(self, email) -> PendingRegistration | None:
        return self._dao.query.filter(email=normalize_email(email)).all().first

    def discard(self, registration: PendingRegistration) -> None:
        self._dao.delete(registration)
