from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    # Exactly one of user_id / guest_cart_id identifies the cart
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, unique=True, index=True)
    guest_cart_id = Column(String(64), nullable=True, unique=True, index=True)
    total_quantity = Column(Integer, default=0, nullable=False)
    total_original_price = Column(Numeric(12, 2), default=0, nullable=False)
    total_discount_amount = Column(Numeric(12, 2), default=0, nullable=False)
    final_total_price = Column(Numeric(12, 2), default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.id",
    )


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    price_original = Column(Numeric(12, 2), default=0, nullable=False)
    price_discount = Column(Numeric(12, 2), default=0, nullable=False)
    total_price = Column(Numeric(12, 2), default=0, nullable=False)

    # Snapshot of the discount applied at the last pricing pass
    applied_discount_id = Column(Integer, ForeignKey("discounts.id"), nullable=True)
    program_name = Column(String(255), nullable=True)
    discount_percent = Column(Integer, default=0, nullable=False)
    saved_amount = Column(Numeric(12, 2), default=0, nullable=False)

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")
