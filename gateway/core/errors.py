"""API hata sınıfları: her biri {"error": {"code", "description"}} gövdesiyle döner."""

AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
BAD_REQUEST_ERROR = "BAD_REQUEST_ERROR"
NOT_FOUND_ERROR = "NOT_FOUND_ERROR"
INVALID_VPA = "INVALID_VPA"
INVALID_CARD = "INVALID_CARD"
EXPIRED_CARD = "EXPIRED_CARD"
INVALID_PAYMENT_METHOD = "INVALID_PAYMENT_METHOD"
RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"


def error_body(code: str, description: str) -> dict:
    return {"error": {"code": code, "description": description}}


class GatewayError(Exception):
    status_code = 400
    code = BAD_REQUEST_ERROR
    default_description = "Bad request"

    def __init__(self, description: str | None = None):
        self.description = description or self.default_description
        super().__init__(self.description)

    def to_dict(self) -> dict:
        return error_body(self.code, self.description)


class AuthenticationError(GatewayError):
    status_code = 401
    code = AUTHENTICATION_ERROR
    default_description = "Invalid API credentials"


class BadRequestError(GatewayError):
    pass


class NotFoundError(GatewayError):
    status_code = 404
    code = NOT_FOUND_ERROR
    default_description = "Not found"


class InvalidVpaError(GatewayError):
    code = INVALID_VPA
    default_description = "VPA format invalid"


class InvalidCardError(GatewayError):
    code = INVALID_CARD
    default_description = "Card validation failed"


class ExpiredCardError(GatewayError):
    code = EXPIRED_CARD
    default_description = "Card expiry date invalid"


class InvalidPaymentMethodError(GatewayError):
    code = INVALID_PAYMENT_METHOD
    default_description = "Payment method must be one of: upi, card"


class InternalError(GatewayError):
    status_code = 500
    code = INTERNAL_ERROR
    default_description = "Internal server error"
