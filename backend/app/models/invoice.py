from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, Enum as SQLEnum, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.core.database import Base


class InvoiceStatusEnum(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class PaymentMethodEnum(str, enum.Enum):
    COD = "COD"
    MOMO_QR = "MOMO_QR"
    BANK_TRANSFER = "BANK_TRANSFER"


class ShippingMethodEnum(str, enum.Enum):
    STANDARD = "standard"
    FAST = "fast"


def _enum_type(enum_cls):
    return SQLEnum(enum_cls, values_callable=lambda x: [e.value for e in x], native_enum=False)


class Invoice(Base):
    """An order placed from a shopper's cart."""
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(50), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    recipient_name = Column(String(255), nullable=False)
    recipient_phone = Column(String(20), nullable=False)
    recipient_address = Column(Text, nullable=False)
    note = Column(Text)
    shipping_method = Column(_enum_type(ShippingMethodEnum), nullable=False, default=ShippingMethodEnum.STANDARD)
    payment_method = Column(_enum_type(PaymentMethodEnum), nullable=False, default=PaymentMethodEnum.COD)
    subtotal = Column(Numeric(12, 2), nullable=False)  # before discounts
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    shipping_fee = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(_enum_type(InvoiceStatusEnum), nullable=False, default=InvoiceStatusEnum.PENDING)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.id",
    )


class InvoiceItem(Base):
    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    # Name and prices are copied so later catalog edits do not change past orders
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    discount_percent = Column(Integer, nullable=False, default=0)
    program_name = Column(String(255), nullable=True)
    total_price = Column(Numeric(12, 2), nullable=False)

    invoice = relationship("Invoice", back_populates="items")
