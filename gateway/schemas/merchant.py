from pydantic import BaseModel


class SeededMerchantResponse(BaseModel):
    """Açılışta oluşturulan test merchant; secret dönmez."""
    id: str
    email: str
    api_key: str
    seeded: bool = True
