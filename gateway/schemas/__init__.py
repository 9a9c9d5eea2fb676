from .merchant import SeededMerchantResponse
from .order import CreateOrderRequest, OrderResponse, PublicOrderResponse
from .payment import CardDetails, CreatePaymentRequest, PaymentResponse

__all__ = [
    "CardDetails",
    "CreateOrderRequest",
    "CreatePaymentRequest",
    "OrderResponse",
    "PaymentResponse",
    "PublicOrderResponse",
    "SeededMerchantResponse",
]
