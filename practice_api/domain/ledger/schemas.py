"""Ledger domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ...models import EntryType, PaymentMethod
from ...utils.sanitization import clean_text


class LedgerEntryCreate(BaseModel):
    """Schema for a manual cash-flow entry"""

    amount: Decimal = Field(..., gt=0)
    concept: str = Field(..., min_length=1)
    entryType: EntryType
    transactionDate: date = Field(default_factory=date.today)
    internalId: Optional[str] = Field(None, max_length=50)
    area: str = "General"
    subarea: str = "General"
    paymentMethod: Optional[PaymentMethod] = None
    bankAccount: Optional[str] = None
    bankMovementId: Optional[str] = None
    unrealized: bool = False
    amountPaid: Optional[Decimal] = Field(None, ge=0)

    @field_validator("concept")
    @classmethod
    def validate_concept(cls, v):
        return clean_text(v, max_length=500)


class LedgerEntryUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0)
    concept: Optional[str] = None
    entryType: Optional[EntryType] = None
    transactionDate: Optional[date] = None
    area: Optional[str] = None
    subarea: Optional[str] = None
    paymentMethod: Optional[PaymentMethod] = None
    bankAccount: Optional[str] = None
    bankMovementId: Optional[str] = None
    unrealized: Optional[bool] = None
    amountPaid: Optional[Decimal] = Field(None, ge=0)

    @field_validator("concept")
    @classmethod
    def validate_concept(cls, v):
        if v is None:
            return v
        if not v.strip():
            raise ValueError("concept cannot be empty")
        return clean_text(v, max_length=500)


class LedgerEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    internal_id: str
    entry_type: str
    amount: Decimal
    concept: str
    transaction_date: date
    area: str
    subarea: str
    payment_method: Optional[str] = None
    bank_account: Optional[str] = None
    bank_movement_id: Optional[str] = None
    unrealized: bool
    transaction_type: str
    client_id: Optional[int] = None
    supplier_id: Optional[int] = None
    sale_id: Optional[int] = None
    purchase_id: Optional[int] = None
    payment_status: Optional[str] = None
    amount_paid: Optional[Decimal] = None
    created_at: Optional[datetime] = None


class LedgerBalance(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_income: Decimal
    total_expense: Decimal
    balance: Decimal
    pending_income: Decimal
    pending_expense: Decimal
    projected_balance: Decimal
