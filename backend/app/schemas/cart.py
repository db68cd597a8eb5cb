from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal


class CartAddRequest(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1)


class CartUpdateRequest(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=0)  # 0 removes the line


class CartProductInfo(BaseModel):
    id: int
    name: str
    price: Decimal
    stock: Optional[int]
    avatar: Optional[str]

    class Config:
        from_attributes = True


class AppliedDiscount(BaseModel):
    discount_id: int
    program_name: Optional[str]
    discount_percent: int
    saved_amount: Decimal


class CartItemResponse(BaseModel):
    product: CartProductInfo
    quantity: int
    price_original: Decimal
    price_discount: Decimal
    total_price: Decimal
    applied_discount: Optional[AppliedDiscount] = None


class CartResponse(BaseModel):
    id: Optional[int] = None  # None until the first item is added
    user_id: Optional[int] = None
    guest_cart_id: Optional[str] = None
    items: List[CartItemResponse] = []
    total_quantity: int = 0
    total_original_price: Decimal = Decimal("0")
    total_discount_amount: Decimal = Decimal("0")
    final_total_price: Decimal = Decimal("0")


class GuestPreviewItem(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1)


class GuestPreviewRequest(BaseModel):
    items: List[GuestPreviewItem] = []


class ShippingOption(BaseModel):
    method: str
    fee: Decimal


class CheckoutResponse(BaseModel):
    message: str
    cart: CartResponse
    payment_options: List[str]
    shipping_options: List[ShippingOption]
