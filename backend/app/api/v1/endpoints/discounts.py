from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.api.v1.endpoints.auth import require_admin
from app.models.user import User
from app.schemas.discount import DiscountCreate, DiscountUpdate, DiscountResponse
from app.services import discount_service

router = APIRouter()


@router.get("/", response_model=List[DiscountResponse])
async def list_discounts(db: Session = Depends(get_db)):
    """All discounts, newest first, with their parent program when attached."""
    return discount_service.list_discounts(db)


@router.get("/{discount_id}", response_model=DiscountResponse)
async def get_discount(discount_id: int, db: Session = Depends(get_db)):
    return discount_service.get_discount(db, discount_id)


@router.post("/", response_model=DiscountResponse, status_code=201)
async def create_discount(
    body: DiscountCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    """
    Create a standalone discount. It starts without a program; attach it by
    adding its id to a sale program's discount list.
    """
    return discount_service.create_discount(db, body)


@router.put("/{discount_id}", response_model=DiscountResponse)
async def update_discount(
    discount_id: int,
    body: DiscountUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    return discount_service.update_discount(db, discount_id, body)


@router.delete("/{discount_id}", response_model=DiscountResponse)
async def deactivate_discount(
    discount_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    """Soft delete, keeps the record and its program link."""
    return discount_service.deactivate_discount(db, discount_id)
