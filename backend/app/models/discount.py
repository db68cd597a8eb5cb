from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.core.database import Base


class DiscountTypeEnum(str, enum.Enum):
    SALE = "SALE"
    AGENCY = "AGENCY"


class PromotionTypeEnum(str, enum.Enum):
    FLASHSALE = "FLASHSALE"
    SEASONAL = "SEASONAL"
    COMBO = "COMBO"
    GENERAL = "GENERAL"


class TargetTypeEnum(str, enum.Enum):
    PRODUCT = "PRODUCT"
    CATEGORY = "CATEGORY"
    ORDER_TOTAL = "ORDER_TOTAL"  # store-wide


def _enum_column(enum_cls, **kwargs):
    return Column(SQLEnum(enum_cls, values_callable=lambda x: [e.value for e in x], native_enum=False), **kwargs)


class Discount(Base):
    __tablename__ = "discounts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    type = _enum_column(DiscountTypeEnum, nullable=False)
    promotion_type = _enum_column(PromotionTypeEnum, nullable=False, default=PromotionTypeEnum.GENERAL)
    target_type = _enum_column(TargetTypeEnum, nullable=False)
    target_id = Column(Integer, nullable=True)  # product or category id, depending on target_type
    discount_percent = Column(Integer, nullable=False)  # 0-100
    min_quantity = Column(Integer, nullable=False, default=1)
    start_sale = Column(DateTime(timezone=True), nullable=False)
    end_sale = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Back-reference to the owning program; written only by the sale program service
    program_id = Column(Integer, ForeignKey("sale_programs.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    program = relationship("SaleProgram", foreign_keys=[program_id], viewonly=True)
