"""Ödeme yöntemine özgü doğrulamalar: VPA biçimi, Luhn, kart son kullanma tarihi, BIN'den ağ tespiti.
Hepsi saf fonksiyon; yan etkisi yok."""
import re
from datetime import date

from gateway.core.clock import utcnow

_VPA_RE = re.compile(r"[a-zA-Z0-9._-]+@[a-zA-Z0-9]+")
_NON_DIGIT_RE = re.compile(r"\D")

# Sıra önemli: ilk eşleşen ağ döner
_NETWORK_PATTERNS = (
    ("visa", re.compile(r"^4")),
    ("mastercard", re.compile(r"^5[1-5]")),
    ("amex", re.compile(r"^3[47]")),
    ("rupay", re.compile(r"^(60|65|8[1-9])")),
)


def clean_card_number(number: str | None) -> str:
    return _NON_DIGIT_RE.sub("", number or "")


def validate_vpa(vpa: str | None) -> bool:
    if not vpa:
        return False
    return _VPA_RE.fullmatch(vpa) is not None


def validate_luhn(number: str | None) -> bool:
    digits = [int(c) for c in clean_card_number(number)]
    if not digits:
        return False
    # Sağdan ikinci haneden başlayarak her ikinci hane iki katına çıkar
    for i in range(len(digits) - 2, -1, -2):
        digits[i] *= 2
        if digits[i] > 9:
            digits[i] -= 9
    return sum(digits) % 10 == 0


def detect_network(number: str | None) -> str:
    clean = clean_card_number(number)
    for network, pattern in _NETWORK_PATTERNS:
        if pattern.match(clean):
            return network
    return "unknown"


def validate_expiry(month: str | int | None, year: str | int | None, today: date | None = None) -> bool:
    """
    Ay/yıl ile son kullanma kontrolü (gün değil, takvim ayı hassasiyeti).
    2 haneli yıl 2000+yıl kabul edilir. Ay 1-12 dışında veya sayı değilse False.
    """
    month_s = str(month).strip() if month is not None else ""
    year_s = str(year).strip() if year is not None else ""
    if not month_s.isdecimal() or not year_s.isdecimal():
        return False
    exp_month = int(month_s)
    exp_year = int(year_s)
    if len(year_s) == 2:
        exp_year += 2000
    if not 1 <= exp_month <= 12:
        return False
    today = today or utcnow().date()
    return (exp_year, exp_month) >= (today.year, today.month)
