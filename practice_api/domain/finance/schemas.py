"""Line item schemas shared by quotations, sales and purchases"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ... import config
from ...utils.sanitization import clean_text


class LineItemIn(BaseModel):
    """Schema for a line item as sent by the client"""

    description: str = Field(..., min_length=1)
    itemType: str = "service"
    quantity: Decimal = Field(..., ge=0)
    unit: str = "unit"
    unitPrice: Decimal = Field(..., ge=0)
    discountRate: Decimal = Field(Decimal("0"), ge=0, le=1)
    taxRate: Decimal = Field(Decimal(config.DEFAULT_TAX_RATE), ge=0)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        return clean_text(v, max_length=500)

    @field_validator("itemType")
    @classmethod
    def validate_item_type(cls, v):
        if v not in ("product", "service"):
            raise ValueError("itemType must be 'product' or 'service'")
        return v

    def to_fields(self) -> dict:
        return {
            "description": self.description,
            "item_type": self.itemType,
            "quantity": self.quantity,
            "unit": self.unit,
            "unit_price": self.unitPrice,
            "discount_rate": self.discountRate,
            "tax_rate": self.taxRate,
        }


class LineItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    description: str
    item_type: str
    quantity: Decimal
    unit: str
    unit_price: Decimal
    discount_rate: Decimal
    tax_rate: Decimal
    subtotal: Decimal
    tax: Decimal
    order: int


class DocumentResponseBase(BaseModel):
    """Fields every priced document returns"""

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    status: str
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    notes: Optional[str] = None
    items: list[LineItemResponse] = []
    created_at: Optional[datetime] = None
