"""
Sale programs: public listing/detail for the storefront, admin writes.

Writes touching the discount list go through sale_program_service so the
program's discount ids and each discount's program_id change together.
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.api.v1.endpoints.auth import require_admin
from app.models.user import User
from app.schemas.discount import DiscountResponse
from app.schemas.sale_program import (
    SaleProgramCreate,
    SaleProgramUpdate,
    SaleProgramResponse,
    SaleProgramListItem,
    SaleProgramDetail,
    SaleProgramDeactivateResponse,
    DiscountBrief,
)
from app.services import sale_program_service

router = APIRouter()


def _with_discounts(schema, program, discounts, discount_schema):
    data = SaleProgramResponse.model_validate(program).model_dump()
    data["discounts"] = [discount_schema.model_validate(d) for d in discounts]
    return schema(**data)


@router.get("/", response_model=List[SaleProgramListItem])
async def list_sale_programs(db: Session = Depends(get_db)):
    """All programs, newest first, including inactive and expired ones."""
    return [
        _with_discounts(SaleProgramListItem, program, discounts, DiscountBrief)
        for program, discounts in sale_program_service.list_programs(db)
    ]


@router.get("/{program_id}", response_model=SaleProgramDetail)
async def get_sale_program(program_id: int, db: Session = Depends(get_db)):
    program, discounts = sale_program_service.get_program_with_discounts(db, program_id)
    return _with_discounts(SaleProgramDetail, program, discounts, DiscountResponse)


@router.post("/", response_model=SaleProgramResponse, status_code=201)
async def create_sale_program(
    body: SaleProgramCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    data = body.model_dump(exclude={"discounts"})
    return sale_program_service.create_program(db, data, body.discounts, created_by=current_user.id)


@router.put("/{program_id}", response_model=SaleProgramResponse)
async def update_sale_program(
    program_id: int,
    body: SaleProgramUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    """
    Update program fields and, when `discounts` is sent, replace the discount list.
    Discounts dropped from the list are detached, new ones are attached.
    """
    data = body.model_dump(exclude={"discounts"}, exclude_unset=True)
    data = {k: v for k, v in data.items() if v is not None or k in ("description", "banner_image")}
    program, _result = sale_program_service.update_program(db, program_id, data, body.discounts)
    return program


@router.delete("/{program_id}", response_model=SaleProgramDeactivateResponse)
async def deactivate_sale_program(
    program_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    """Soft delete: the program and its listed discounts are marked inactive."""
    result = sale_program_service.deactivate_program(db, program_id)
    return SaleProgramDeactivateResponse(
        message="Sale program deactivated",
        deactivated_discounts=result.deactivated,
        failed_discounts=result.failed,
    )
