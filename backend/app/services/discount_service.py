from datetime import datetime, timedelta
from typing import List
from sqlalchemy.orm import Session
from app.core.db_transaction import db_transaction
from app.core.exceptions import NotFoundError
from app.core.logging_config import get_logger
from app.core.validators import validate_date_window
from app.models.discount import Discount, DiscountTypeEnum
from app.schemas.discount import DiscountCreate, DiscountUpdate

logger = get_logger("discount_service")

DEFAULT_SALE_DURATION = timedelta(days=1)
DEFAULT_AGENCY_DURATION = timedelta(days=30)

# Fields an update may explicitly clear
NULLABLE_FIELDS = ("target_id", "end_sale")


def default_end_sale(discount_type: DiscountTypeEnum, start_sale: datetime) -> datetime:
    """End of the sale window when none is given: one day, or 30 days for agency discounts."""
    if discount_type == DiscountTypeEnum.AGENCY:
        return start_sale + DEFAULT_AGENCY_DURATION
    return start_sale + DEFAULT_SALE_DURATION


def create_discount(db: Session, payload: DiscountCreate) -> Discount:
    data = payload.model_dump()
    if data["end_sale"] is None:
        data["end_sale"] = default_end_sale(payload.type, payload.start_sale)
    validate_date_window(data["start_sale"], data["end_sale"], "start_sale", "end_sale")

    with db_transaction(db):
        discount = Discount(**data)
        db.add(discount)

    db.refresh(discount)
    logger.info(f"Created discount {discount.id} '{discount.name}' ({discount.discount_percent}%)")
    return discount


def list_discounts(db: Session) -> List[Discount]:
    return db.query(Discount).order_by(Discount.created_at.desc(), Discount.id.desc()).all()


def get_discount(db: Session, discount_id: int) -> Discount:
    discount = db.query(Discount).filter(Discount.id == discount_id).first()
    if discount is None:
        raise NotFoundError("Discount", discount_id)
    return discount


def update_discount(db: Session, discount_id: int, payload: DiscountUpdate) -> Discount:
    update_data = {
        k: v for k, v in payload.model_dump(exclude_unset=True).items()
        if v is not None or k in NULLABLE_FIELDS
    }

    with db_transaction(db):
        discount = get_discount(db, discount_id)
        validate_date_window(
            update_data.get("start_sale", discount.start_sale),
            update_data.get("end_sale", discount.end_sale),
            "start_sale",
            "end_sale",
        )
        for key, value in update_data.items():
            setattr(discount, key, value)

    db.refresh(discount)
    logger.info(f"Updated discount {discount.id}: fields={sorted(update_data)}")
    return discount


def deactivate_discount(db: Session, discount_id: int) -> Discount:
    """Soft delete. The program back-reference is left alone so the program still lists it."""
    with db_transaction(db):
        discount = get_discount(db, discount_id)
        discount.is_active = False

    db.refresh(discount)
    logger.info(f"Deactivated discount {discount.id}")
    return discount
