from rest_framework import status
from rest_framework.exceptions import APIException


class ServiceError(APIException):
    """Business-rule failure raised from service functions; views render it as an envelope."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request."
    default_code = "invalid"

    def __init__(self, detail=None, code=None, **extra):
        super().__init__(detail, code)
        # extra keys are returned in the response body untouched
        self.extra = extra


class BadRequest(ServiceError):
    pass


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not authorized."
    default_code = "forbidden"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"


class Gone(ServiceError):
    status_code = status.HTTP_410_GONE
    default_detail = "No longer available."
    default_code = "gone"


class PaymentRequired(ServiceError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_detail = "Not enough credits available."
    default_code = "payment_required"
