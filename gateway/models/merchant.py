import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from gateway.core.clock import utcnow


class Merchant(SQLModel, table=True):
    """API anahtarı/secret çifti ile kimlik doğrulayan satıcı. Secret yalnızca bcrypt hash olarak saklanır."""

    __tablename__ = "merchants"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True, max_length=36)
    name: str
    email: str = Field(unique=True, index=True)
    api_key: str = Field(unique=True, index=True, max_length=64)
    api_secret_hash: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
