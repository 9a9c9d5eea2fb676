"""Saat soyutlaması: işlemci ve settlement worker zamanı buradan okur (testlerde elle ilerletilir)."""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Şu an, UTC (naive; veritabanıyla uyumlu)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SystemClock:
    def now(self) -> datetime:
        return utcnow()
