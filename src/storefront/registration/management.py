"""Registration: start (send a code) and verify (check the code) commands."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import StateConflictError, UpstreamNotificationError
from storefront.notifications.notifier import Notifier
from storefront.registration.registration import PendingRegistration, registration_ttl_minutes

logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 6
# bcrypt only reads the first 72 bytes
MAX_PASSWORD_BYTES = 72


@storefront.command(part_of="PendingRegistration")
class StartRegistration:
    email = String(required=True, max_length=254)
    name = String(required=True, max_length=100)
    password = String(required=True, max_length=128)


@storefront.command(part_of="PendingRegistration")
class VerifyRegistration:
    email = String(required=True, max_length=254)
    otp = String(required=True, max_length=10)


@storefront.command_handler(part_of=PendingRegistration)
class RegistrationHandler:
    @handle(StartRegistration)
    def start_registration(self, command):
        if "@" not in command.email:
            raise ValidationError({"email": ["A valid email address is required"]})
        if len(command.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError({"password": [f"Password must be at least {MIN_PASSWORD_LENGTH} characters"]})
        if len(command.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError({"password": [f"Password must be at most {MAX_PASSWORD_BYTES} bytes"]})

        repo = current_domain.repository_for(PendingRegistration)
        # A fresh request replaces only this address's previous entry
        previous = repo.for_email(command.email)
        if previous is not None:
            repo.discard(previous)

        ttl = registration_ttl_minutes()
        registration = PendingRegistration.start(command.email, command.name, command.password, ttl_minutes=ttl)
        repo.add(registration)

        otp_sent = True
        try:
            Notifier().send_registration_otp(registration.email, registration.name, registration.otp, ttl)
        except UpstreamNotificationError as exc:
            otp_sent = False
            logger.warning("registration_otp_failed", email=registration.email, error=exc.message)

        return {
            "email": registration.email,
            "expires_at": registration.expires_at.isoformat(),
            "otp_sent": otp_sent,
        }

    @handle(VerifyRegistration)
    def verify_registration(self, command):
        repo = current_domain.repository_for(PendingRegistration)
        registration = repo.for_email(command.email)
        if registration is None:
            raise ObjectNotFoundError({"email": ["No pending registration for this email"]})
        if registration.is_expired():
            raise StateConflictError("Verification code has expired. Please register again")
        if registration.attempts_remaining == 0:
            raise StateConflictError("Too many incorrect attempts. Please register again")

        if not registration.check_otp(command.otp):
            repo.add(registration)
            return {
                "verified": False,
                "email": registration.email,
                "attempts_remaining": registration.attempts_remaining,
            }

        repo.discard(registration)
        logger.info("registration_verified", email=registration.email)
        return {
            "verified": True,
            "email": registration.email,
            "name": registration.name,
            "password_hash": registration.password_hash,
        }
