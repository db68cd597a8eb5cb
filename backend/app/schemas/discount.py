from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from app.core.validators import to_naive_utc
from app.models.discount import DiscountTypeEnum, PromotionTypeEnum, TargetTypeEnum


class DiscountCreate(BaseModel):
    # program_id is deliberately absent: attaching goes through the sale program endpoints
    name: str = Field(..., min_length=1)
    type: DiscountTypeEnum
    promotion_type: PromotionTypeEnum = PromotionTypeEnum.GENERAL
    target_type: TargetTypeEnum
    target_id: Optional[int] = None
    discount_percent: int = Field(..., ge=0, le=100)
    min_quantity: int = Field(1, ge=1)
    start_sale: datetime
    end_sale: Optional[datetime] = None  # defaults from type, see discount_service
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def name_strip(cls, v: str) -> str:
        return v.strip()

    @field_validator("start_sale", "end_sale")
    @classmethod
    def normalize_datetime(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class DiscountUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[DiscountTypeEnum] = None
    promotion_type: Optional[PromotionTypeEnum] = None
    target_type: Optional[TargetTypeEnum] = None
    target_id: Optional[int] = None
    discount_percent: Optional[int] = Field(None, ge=0, le=100)
    min_quantity: Optional[int] = Field(None, ge=1)
    start_sale: Optional[datetime] = None
    end_sale: Optional[datetime] = None
    is_active: Optional[bool] = None

    @field_validator("start_sale", "end_sale")
    @classmethod
    def normalize_datetime(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class DiscountProgramInfo(BaseModel):
    id: int
    name: str
    start_date: datetime
    end_date: datetime

    class Config:
        from_attributes = True


class DiscountResponse(BaseModel):
    id: int
    name: str
    type: DiscountTypeEnum
    promotion_type: PromotionTypeEnum
    target_type: TargetTypeEnum
    target_id: Optional[int]
    discount_percent: int
    min_quantity: int
    start_sale: datetime
    end_sale: Optional[datetime]
    is_active: bool
    program_id: Optional[int]
    program: Optional[DiscountProgramInfo] = None
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
