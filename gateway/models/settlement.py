"""Bekleyen settlement işareti: ödeme ile aynı transaction'da yazılır, terminal geçişte silinir.
Süreç yeniden başlarsa kalan satırlar açılışta tekrar zamanlanır."""
from datetime import datetime

from sqlmodel import Field, SQLModel

from gateway.core.clock import utcnow


class PendingSettlement(SQLModel, table=True):
    __tablename__ = "pending_settlements"
    payment_id: str = Field(foreign_key="payments.id", primary_key=True, max_length=64)
    method: str
    due_at: datetime = Field(index=True)
    created_at: datetime = Field(default_factory=utcnow)
