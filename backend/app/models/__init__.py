from app.models.user import User, RoleEnum
from app.models.sale_program import SaleProgram
from app.models.discount import Discount, DiscountTypeEnum, PromotionTypeEnum, TargetTypeEnum
from app.models.product import Category, Product
from app.models.cart import Cart, CartItem
from app.models.invoice import Invoice, InvoiceItem, InvoiceStatusEnum, PaymentMethodEnum, ShippingMethodEnum

__all__ = [
    "User",
    "RoleEnum",
    "SaleProgram",
    "Discount",
    "DiscountTypeEnum",
    "PromotionTypeEnum",
    "TargetTypeEnum",
    "Category",
    "Product",
    "Cart",
    "CartItem",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatusEnum",
    "PaymentMethodEnum",
    "ShippingMethodEnum",
]
