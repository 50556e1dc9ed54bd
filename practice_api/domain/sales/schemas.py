"""Sale domain schemas - Pydantic models for validation"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from ...models import SaleStatus
from ..finance.schemas import DocumentResponseBase, LineItemIn


class SaleCreate(BaseModel):
    """Schema for creating a new sale"""

    clientId: int
    saleDate: date = Field(default_factory=date.today)
    deliveryDate: Optional[date] = None
    status: Optional[SaleStatus] = None
    amountPaid: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = None
    termsAndConditions: Optional[str] = None
    items: list[LineItemIn] = Field(..., min_length=1)


class SaleUpdate(BaseModel):
    """Schema for updating a sale; omitted fields keep their stored value"""

    clientId: Optional[int] = None
    saleDate: Optional[date] = None
    deliveryDate: Optional[date] = None
    status: Optional[SaleStatus] = None
    amountPaid: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None
    termsAndConditions: Optional[str] = None
    items: Optional[list[LineItemIn]] = None


class SaleResponse(DocumentResponseBase):
    sale_number: str
    client_id: int
    quotation_id: Optional[int] = None
    sale_date: date
    delivery_date: Optional[date] = None
    payment_status: str
    amount_paid: Decimal
    terms_and_conditions: Optional[str] = None
