from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from app.models.invoice import InvoiceStatusEnum, PaymentMethodEnum, ShippingMethodEnum


class OrderCreate(BaseModel):
    recipient_name: str = Field(..., min_length=1)
    recipient_phone: str = Field(..., min_length=1, max_length=20)
    recipient_address: str = Field(..., min_length=1)
    note: Optional[str] = None
    shipping_method: ShippingMethodEnum = ShippingMethodEnum.STANDARD
    payment_method: PaymentMethodEnum = PaymentMethodEnum.COD

    @field_validator("recipient_name", "recipient_phone", "recipient_address")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class OrderCreatedResponse(BaseModel):
    message: str
    invoice_id: int
    invoice_number: str
    total_amount: Decimal


class InvoiceItemResponse(BaseModel):
    product_id: Optional[int]
    product_name: str
    quantity: int
    unit_price: Decimal
    discount_percent: int
    program_name: Optional[str]
    total_price: Decimal

    class Config:
        from_attributes = True


class InvoiceResponse(BaseModel):
    id: int
    invoice_number: str
    user_id: int
    recipient_name: str
    recipient_phone: str
    recipient_address: str
    note: Optional[str]
    shipping_method: ShippingMethodEnum
    payment_method: PaymentMethodEnum
    status: InvoiceStatusEnum
    subtotal: Decimal
    discount_amount: Decimal
    shipping_fee: Decimal
    total_amount: Decimal
    items: List[InvoiceItemResponse]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
