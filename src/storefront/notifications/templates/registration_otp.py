"""One-time password for completing a registration."""

from storefront.notifications.types import NotificationType


class RegistrationOtpTemplate:
    notification_type = NotificationType.REGISTRATION_OTP.value

    @staticmethod
    def render(context: dict) -> dict:
        return {
            "subject": "Your verification code",
            "body": (
                f"Hi {context.get('name') or 'there'},\n\n"
                f"Your verification code is {context['otp']}. "
                f"It expires in {context['ttl_minutes']} minutes.\n"
            ),
        }
