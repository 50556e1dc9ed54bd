"""Purchase domain schemas - Pydantic models for validation"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from ...models import PurchaseStatus
from ..finance.schemas import DocumentResponseBase, LineItemIn


class PurchaseCreate(BaseModel):
    """Schema for creating a new purchase"""

    supplierId: int
    purchaseDate: date = Field(default_factory=date.today)
    deliveryDate: Optional[date] = None
    status: Optional[PurchaseStatus] = None
    amountPaid: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = None
    items: list[LineItemIn] = Field(..., min_length=1)


class PurchaseUpdate(BaseModel):
    supplierId: Optional[int] = None
    purchaseDate: Optional[date] = None
    deliveryDate: Optional[date] = None
    status: Optional[PurchaseStatus] = None
    amountPaid: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None
    items: Optional[list[LineItemIn]] = None


class PurchaseResponse(DocumentResponseBase):
    purchase_number: str
    supplier_id: int
    purchase_date: date
    delivery_date: Optional[date] = None
    payment_status: str
    amount_paid: Decimal
