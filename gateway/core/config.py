from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env proje kökünde: gateway/core/config.py -> gateway/core -> gateway -> kök
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"


class Settings(BaseSettings):
    database_url: str = "sqlite:///./gateway.db"
    # CORS: virgülle ayrılmış origin listesi; checkout sayfası farklı bir origin'den çağırır
    cors_origins: str = "*"
    # Kimliksiz (public checkout) uçlar için IP başına dakikada max istek
    rate_limit_per_minute: int = 60
    environment: str = "development"

    default_currency: str = "INR"
    min_order_amount: int = 100  # en küçük birim (paise)

    # Eski dağıtımdaki ortam değişkenleri: TEST_MODE=true iken gecikme ve sonuç sabitlenir
    test_mode: bool = False
    test_processing_delay: int = 1000  # ms
    test_payment_success: bool = True

    # Simülasyon parametreleri (gerçek bir finansal davranış değil)
    settlement_min_delay_ms: int = 5000
    settlement_max_delay_ms: int = 10000
    upi_success_rate: float = 0.90
    card_success_rate: float = 0.95
    settlement_seed: int | None = None  # verilirse RNG tekrarlanabilir
    settlement_workers: int = 4
    settlement_poll_interval: float = 0.5  # saniye; zamanlayıcı iş parçacığının en uzun bekleme süresi

    # Açılışta test merchant'ı oluştur (dashboard / değerlendirme için)
    seed_test_merchant: bool = True
    test_merchant_name: str = "Test Merchant"
    test_merchant_email: str = "test@example.com"
    test_merchant_api_key: str = "key_test_abc123"
    test_merchant_api_secret: str = "secret_test_xyz789"

    bcrypt_rounds: int = 12

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("default_currency", mode="before")
    @classmethod
    def upper_currency(cls, v: str | None) -> str:
        return (v or "INR").strip().upper()

    @field_validator("upi_success_rate", "card_success_rate")
    @classmethod
    def check_rate(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("success rate must be between 0 and 1")
        return v


settings = Settings()
