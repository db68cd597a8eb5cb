"""
Invoice Service

Turns a shopper's cart into an order (an Invoice in PENDING state) and
serves order lookups for shoppers and admins.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.db_transaction import db_transaction
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging_config import get_logger
from app.models.invoice import Invoice, InvoiceItem, InvoiceStatusEnum, PaymentMethodEnum, ShippingMethodEnum
from app.models.user import User, RoleEnum
from app.services import cart_service
from app.services.cart_identity import CartKey

logger = get_logger("invoice_service")


def shipping_fee_for(method: ShippingMethodEnum) -> Decimal:
    if method == ShippingMethodEnum.FAST:
        return settings.SHIPPING_FEE_FAST
    return settings.SHIPPING_FEE_STANDARD


def generate_invoice_number(db: Session, now: Optional[datetime] = None) -> str:
    """
    Next invoice number for the day.

    Format: INV-YYYYMMDD-XXX, where XXX is the day's sequence (001, 002, ...).
    """
    date_prefix = (now or datetime.utcnow()).strftime("%Y%m%d")
    prefix_pattern = f"INV-{date_prefix}-"

    existing = db.query(Invoice.invoice_number).filter(
        Invoice.invoice_number.like(f"{prefix_pattern}%")
    ).all()

    max_seq = 0
    for (invoice_number,) in existing:
        try:
            max_seq = max(max_seq, int(invoice_number.split("-")[-1]))
        except ValueError:
            logger.warning(f"Could not parse invoice number: {invoice_number}")

    return f"{prefix_pattern}{max_seq + 1:03d}"


def create_order(db: Session, user_id: int, data: dict) -> Invoice:
    """
    Place an order from the user's cart.

    The cart is repriced against the programs running now, copied into a new
    invoice and emptied, all in one transaction. An empty cart, a product
    that has been withdrawn or a line above stock rejects the order.
    """
    shipping_method = ShippingMethodEnum(data.get("shipping_method") or ShippingMethodEnum.STANDARD)
    payment_method = PaymentMethodEnum(data.get("payment_method") or PaymentMethodEnum.COD)

    with db_transaction(db):
        cart = cart_service.find_cart(db, CartKey(user_id=user_id))
        if cart is None or not cart.items:
            raise ValidationError("Cart is empty")

        for item in cart.items:
            if not item.product.is_active:
                raise ValidationError(
                    f"Product '{item.product.name}' is no longer available",
                    detail={"product_id": item.product_id},
                )
            cart_service.check_stock(item.product, item.quantity)
        cart_service.calculate_cart_totals(db, cart)

        shipping_fee = shipping_fee_for(shipping_method)
        invoice = Invoice(
            invoice_number=generate_invoice_number(db),
            user_id=user_id,
            recipient_name=data["recipient_name"],
            recipient_phone=data["recipient_phone"],
            recipient_address=data["recipient_address"],
            note=data.get("note"),
            shipping_method=shipping_method,
            payment_method=payment_method,
            subtotal=cart.total_original_price,
            discount_amount=cart.total_discount_amount,
            shipping_fee=shipping_fee,
            total_amount=cart.final_total_price + shipping_fee,
            status=InvoiceStatusEnum.PENDING,
            items=[
                InvoiceItem(
                    product_id=item.product_id,
                    product_name=item.product.name,
                    quantity=item.quantity,
                    unit_price=item.price_original,
                    discount_percent=item.discount_percent,
                    program_name=item.program_name,
                    total_price=item.total_price,
                )
                for item in cart.items
            ],
        )
        db.add(invoice)
        cart_service.empty_cart(cart)

    db.refresh(invoice)
    logger.info(
        f"Order {invoice.invoice_number} placed by user_id={user_id}: "
        f"total={invoice.total_amount} shipping={shipping_method.value} payment={payment_method.value}"
    )
    return invoice


def list_invoices(db: Session, status: Optional[InvoiceStatusEnum] = None) -> List[Invoice]:
    query = db.query(Invoice)
    if status is not None:
        query = query.filter(Invoice.status == status)
    return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def list_user_invoices(db: Session, user_id: int) -> List[Invoice]:
    return (
        db.query(Invoice)
        .filter(Invoice.user_id == user_id)
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .all()
    )


def get_invoice(db: Session, invoice_id: int, user: User) -> Invoice:
    """An invoice its owner or an admin may read. Anyone else gets NotFoundError."""
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if invoice is None or (invoice.user_id != user.id and user.role != RoleEnum.ADMIN):
        raise NotFoundError("Invoice", invoice_id)
    return invoice
