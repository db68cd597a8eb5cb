from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.api.v1.endpoints.auth import get_current_user, require_admin
from app.models.invoice import InvoiceStatusEnum
from app.models.user import User
from app.schemas.invoice import OrderCreate, OrderCreatedResponse, InvoiceResponse
from app.services import invoice_service

router = APIRouter()


@router.post("/", response_model=OrderCreatedResponse, status_code=201)
async def create_order(
    order: OrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Place an order from the current user's cart; the cart is emptied."""
    invoice = invoice_service.create_order(db, current_user.id, order.model_dump())
    return OrderCreatedResponse(
        message="Order placed",
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        total_amount=invoice.total_amount,
    )


@router.get("/", response_model=List[InvoiceResponse])
async def list_invoices(
    status: Optional[InvoiceStatusEnum] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    return invoice_service.list_invoices(db, status)


@router.get("/me", response_model=List[InvoiceResponse])
async def list_my_invoices(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return invoice_service.list_user_invoices(db, current_user.id)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return invoice_service.get_invoice(db, invoice_id, current_user)
