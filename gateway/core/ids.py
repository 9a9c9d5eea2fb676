"""Dışarıya açılan kimlikler: prefix + 16 alfanümerik karakter (order_..., pay_...)."""
import secrets
import string

ID_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
ID_SUFFIX_LENGTH = 16

ORDER_PREFIX = "order_"
PAYMENT_PREFIX = "pay_"


def generate_id(prefix: str) -> str:
    # Çakışma kontrolü yapılmaz; birincil anahtar kısıtı son güvence
    return prefix + "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_SUFFIX_LENGTH))
