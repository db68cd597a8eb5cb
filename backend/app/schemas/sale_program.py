from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from app.core.validators import to_naive_utc
from app.schemas.discount import DiscountResponse


class SaleProgramCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    start_date: datetime
    end_date: datetime
    discounts: List[int] = []
    banner_image: Optional[str] = None
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def name_strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_datetime(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class SaleProgramUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    discounts: Optional[List[int]] = None  # None leaves the list as it is
    banner_image: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_strip(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_datetime(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class SaleProgramResponse(BaseModel):
    """The stored program document, discounts as ids."""
    id: int
    name: str
    description: Optional[str]
    start_date: datetime
    end_date: datetime
    discounts: List[int]
    banner_image: Optional[str]
    is_active: bool
    created_by: Optional[int]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class DiscountBrief(BaseModel):
    id: int
    name: str
    discount_percent: int

    class Config:
        from_attributes = True


class SaleProgramListItem(SaleProgramResponse):
    discounts: List[DiscountBrief]


class SaleProgramDetail(SaleProgramResponse):
    discounts: List[DiscountResponse]


class SaleProgramDeactivateResponse(BaseModel):
    message: str
    deactivated_discounts: List[int]
    failed_discounts: List[int]
