"""
Domain exceptions raised by the service layer.

Routes translate these into HTTP responses; webhook routes translate them
into the status codes each payment gateway expects.
"""
from typing import Any, Optional


class UroTrackError(Exception):
    """Base class for service-layer errors."""


class ProfileNotFoundError(UroTrackError):
    pass


class PermissionDeniedError(UroTrackError):
    pass


class EmailAlreadyRegisteredError(UroTrackError):
    pass


class PatientLimitError(UroTrackError):
    """Subscriber is not entitled to add another patient."""


class InviteError(UroTrackError):
    pass


class EmailDeliveryError(UroTrackError):
    pass


class WebhookAuthenticationError(UroTrackError):
    """Inbound webhook failed signature or token verification."""


class WebhookIntegrityError(UroTrackError):
    """Gateway data cannot be tied back to a local subscriber."""


class PaymentGatewayError(UroTrackError):
    """
    A call to a payment gateway failed.

    `detail` holds the raw gateway response for logging and must never be
    shown to subscribers.
    """

    def __init__(self, provider: str, message: str, detail: Optional[Any] = None):
        super().__init__(message)
        self.provider = provider
        self.detail = detail
