from enum import Enum


class NotificationType(Enum):
    ORDER_CONFIRMATION = "order_confirmation"
    ORDER_CANCELLATION = "order_cancellation"
    ORDER_STATUS_UPDATE = "order_status_update"
    REGISTRATION_OTP = "registration_otp"
