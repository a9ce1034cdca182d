"""
API error types.

Services raise these; the handler registered in ``create_app`` turns them
into ``{"error": message}`` responses (plus ``code`` when one is set).
"""
from typing import Optional


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None,
                 code: Optional[str] = None, extra: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.code = code
        self.extra = extra or {}

    def to_dict(self) -> dict:
        body = {'error': self.message}
        if self.code:
            body['code'] = self.code
        body.update(self.extra)
        return body


class ValidationError(ApiError):
    status_code = 400


class ForbiddenError(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class SlotUnavailableError(ValidationError):

    def __init__(self, message: str = 'Slot unavailable'):
        super().__init__(message, code='SLOT_UNAVAILABLE')


class PaymentError(ApiError):
    """Unsuccessful payment (400) or payment provider failure (500)"""
    status_code = 400
