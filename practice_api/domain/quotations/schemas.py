"""Quotation domain schemas - Pydantic models for validation"""

from datetime import date, timedelta
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from ...models import QuotationStatus
from ..finance.schemas import DocumentResponseBase, LineItemIn


def _thirty_days_out() -> date:
    return date.today() + timedelta(days=30)


class QuotationCreate(BaseModel):
    """Schema for creating a new quotation"""

    clientId: int
    issueDate: date = Field(default_factory=date.today)
    validUntil: date = Field(default_factory=_thirty_days_out)
    status: Optional[QuotationStatus] = None
    notes: Optional[str] = None
    termsAndConditions: Optional[str] = None
    items: list[LineItemIn] = Field(..., min_length=1)

    @model_validator(mode="after")
    def validate_dates(self):
        if self.validUntil < self.issueDate:
            raise ValueError("validUntil cannot be before issueDate")
        return self


class QuotationUpdate(BaseModel):
    clientId: Optional[int] = None
    issueDate: Optional[date] = None
    validUntil: Optional[date] = None
    status: Optional[QuotationStatus] = None
    notes: Optional[str] = None
    termsAndConditions: Optional[str] = None
    items: Optional[list[LineItemIn]] = None


class QuotationResponse(DocumentResponseBase):
    quotation_number: str
    client_id: int
    issue_date: date
    valid_until: date
    terms_and_conditions: Optional[str] = None
