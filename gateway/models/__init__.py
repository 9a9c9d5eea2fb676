from .merchant import Merchant
from .order import Order
from .payment import Payment
from .settlement import PendingSettlement

__all__ = [
    "Merchant",
    "Order",
    "Payment",
    "PendingSettlement",
]
