"""
Cart Service

Cart lookup by resolved cart key, line item edits, and pricing of lines
against the discounts of the sale programs currently running.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Session
from app.core.db_transaction import db_transaction
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging_config import get_logger
from app.models.cart import Cart, CartItem
from app.models.discount import Discount, TargetTypeEnum
from app.models.product import Product
from app.models.sale_program import SaleProgram
from app.services.cart_identity import CartKey

logger = get_logger("cart_service")

CENT = Decimal("0.01")


@dataclass
class ActiveDiscount:
    discount: Discount
    program_name: str


def _money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def get_active_discounts(db: Session, now: Optional[datetime] = None) -> List[ActiveDiscount]:
    """
    Discounts that can be applied right now.

    A discount qualifies when the program listing it is active and inside its
    date window, and the discount itself is active with start_sale <= now and
    end_sale unset or >= now.
    """
    now = now or datetime.utcnow()
    programs = db.query(SaleProgram).filter(
        SaleProgram.is_active == True,
        SaleProgram.start_date <= now,
        SaleProgram.end_date >= now,
    ).all()
    listed: Dict[int, str] = {}
    for program in programs:
        for discount_id in program.discounts or []:
            listed.setdefault(discount_id, program.name)
    if not listed:
        return []

    discounts = db.query(Discount).filter(
        Discount.id.in_(list(listed)),
        Discount.is_active == True,
        Discount.start_sale <= now,
        or_(Discount.end_sale == None, Discount.end_sale >= now),
    ).all()
    return [ActiveDiscount(discount=d, program_name=listed[d.id]) for d in discounts]


def _matches(discount: Discount, product: Product) -> bool:
    if discount.target_type == TargetTypeEnum.PRODUCT:
        return discount.target_id == product.id
    if discount.target_type == TargetTypeEnum.CATEGORY:
        return product.category_id is not None and discount.target_id == product.category_id
    return discount.target_type == TargetTypeEnum.ORDER_TOTAL


def best_discount(candidates: List[ActiveDiscount], product: Product, quantity: int) -> Optional[ActiveDiscount]:
    """Highest-percent discount targeting the product whose min_quantity the line reaches."""
    best = None
    for candidate in candidates:
        d = candidate.discount
        if not _matches(d, product) or quantity < (d.min_quantity or 1):
            continue
        if d.discount_percent <= 0:
            continue
        if best is None or d.discount_percent > best.discount.discount_percent:
            best = candidate
    return best


@dataclass
class LinePrice:
    price_original: Decimal
    price_discount: Decimal
    total_price: Decimal
    applied: Optional[ActiveDiscount] = None
    saved_amount: Decimal = Decimal("0")

    @property
    def discount_percent(self) -> int:
        return self.applied.discount.discount_percent if self.applied else 0


def price_line(candidates: List[ActiveDiscount], product: Product, quantity: int) -> LinePrice:
    price = _money(product.price or 0)
    chosen = best_discount(candidates, product, quantity)
    if chosen is None:
        return LinePrice(price_original=price, price_discount=price, total_price=price * quantity)
    per_unit_off = _money(price * chosen.discount.discount_percent / 100)
    discounted = price - per_unit_off
    return LinePrice(
        price_original=price,
        price_discount=discounted,
        total_price=discounted * quantity,
        applied=chosen,
        saved_amount=per_unit_off * quantity,
    )


def calculate_cart_totals(db: Session, cart: Cart, now: Optional[datetime] = None) -> Cart:
    """Reprice every line and the cart totals in place. The caller commits."""
    candidates = get_active_discounts(db, now)

    total_original = Decimal("0")
    total_final = Decimal("0")
    total_qty = 0
    for item in cart.items:
        line = price_line(candidates, item.product, item.quantity)
        item.price_original = line.price_original
        item.price_discount = line.price_discount
        item.total_price = line.total_price
        item.applied_discount_id = line.applied.discount.id if line.applied else None
        item.program_name = line.applied.program_name if line.applied else None
        item.discount_percent = line.discount_percent
        item.saved_amount = line.saved_amount

        total_original += line.price_original * item.quantity
        total_final += line.total_price
        total_qty += item.quantity

    cart.total_quantity = total_qty
    cart.total_original_price = total_original
    cart.total_discount_amount = total_original - total_final
    cart.final_total_price = total_final
    return cart


@dataclass
class CartPreview:
    """Priced lines for a cart that is not stored, e.g. a guest's local basket."""
    lines: List[Tuple[Product, int, LinePrice]] = field(default_factory=list)
    total_quantity: int = 0
    total_original_price: Decimal = Decimal("0")
    total_discount_amount: Decimal = Decimal("0")
    final_total_price: Decimal = Decimal("0")


def preview_items(db: Session, items: List[Tuple[int, int]], now: Optional[datetime] = None) -> CartPreview:
    """
    Price (product_id, quantity) pairs without touching any cart.

    Unknown or inactive products are skipped. Nothing is written.
    """
    preview = CartPreview()
    if not items:
        return preview

    ids = {product_id for product_id, _ in items}
    products = {
        p.id: p for p in db.query(Product).filter(Product.id.in_(sorted(ids)), Product.is_active == True).all()
    }
    candidates = get_active_discounts(db, now)

    total_final = Decimal("0")
    for product_id, quantity in items:
        product = products.get(product_id)
        if product is None:
            logger.info(f"Guest preview: skipping unknown product {product_id}")
            continue
        line = price_line(candidates, product, quantity)
        preview.lines.append((product, quantity, line))
        preview.total_quantity += quantity
        preview.total_original_price += line.price_original * quantity
        total_final += line.total_price

    preview.final_total_price = total_final
    preview.total_discount_amount = preview.total_original_price - total_final
    return preview


def find_cart(db: Session, key: CartKey) -> Optional[Cart]:
    if key.user_id is not None:
        return db.query(Cart).filter(Cart.user_id == key.user_id).first()
    return db.query(Cart).filter(Cart.guest_cart_id == key.guest_cart_id).first()


def _get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id, Product.is_active == True).first()
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


def check_stock(product: Product, quantity: int) -> None:
    if product.stock is not None and quantity > product.stock:
        raise ValidationError(
            f"Requested quantity {quantity} exceeds stock for '{product.name}'",
            detail={"product_id": product.id, "stock": product.stock},
        )


def _find_item(cart: Cart, product_id: int) -> Optional[CartItem]:
    for item in cart.items:
        if item.product_id == product_id:
            return item
    return None


def get_cart(db: Session, key: CartKey) -> Optional[Cart]:
    """The cart for this key, repriced; None when it has never been created."""
    cart = find_cart(db, key)
    if cart is None:
        return None
    with db_transaction(db):
        calculate_cart_totals(db, cart)
    db.refresh(cart)
    return cart


def add_to_cart(db: Session, key: CartKey, product_id: int, quantity: int) -> Cart:
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    with db_transaction(db):
        product = _get_product(db, product_id)
        cart = find_cart(db, key)
        if cart is None:
            cart = Cart(user_id=key.user_id, guest_cart_id=key.guest_cart_id)
            db.add(cart)
            logger.info(f"Created cart for {key.as_filter()}")

        item = _find_item(cart, product_id)
        new_qty = quantity + (item.quantity if item else 0)
        check_stock(product, new_qty)
        if item:
            item.quantity = new_qty
        else:
            cart.items.append(CartItem(product=product, quantity=new_qty))
        calculate_cart_totals(db, cart)

    db.refresh(cart)
    return cart


def update_cart_item(db: Session, key: CartKey, product_id: int, quantity: int) -> Cart:
    with db_transaction(db):
        cart = find_cart(db, key)
        if cart is None:
            raise NotFoundError("Cart")
        item = _find_item(cart, product_id)
        if item is None:
            raise NotFoundError("Cart item", product_id)

        if quantity > 0:
            check_stock(_get_product(db, product_id), quantity)
            item.quantity = quantity
        else:
            cart.items.remove(item)
        calculate_cart_totals(db, cart)

    db.refresh(cart)
    return cart


def remove_cart_item(db: Session, key: CartKey, product_id: int) -> Cart:
    with db_transaction(db):
        cart = find_cart(db, key)
        if cart is None:
            raise NotFoundError("Cart")
        item = _find_item(cart, product_id)
        if item is not None:
            cart.items.remove(item)
        calculate_cart_totals(db, cart)

    db.refresh(cart)
    return cart


def empty_cart(cart: Cart) -> None:
    """Drop every line and zero the totals. The caller commits."""
    cart.items.clear()
    cart.total_quantity = 0
    cart.total_original_price = Decimal("0")
    cart.total_discount_amount = Decimal("0")
    cart.final_total_price = Decimal("0")


def clear_cart(db: Session, key: CartKey) -> Optional[Cart]:
    with db_transaction(db):
        cart = find_cart(db, key)
        if cart is not None:
            empty_cart(cart)
    if cart is not None:
        db.refresh(cart)
        logger.info(f"Cleared cart {cart.id} for {key.as_filter()}")
    return cart


def checkout_cart(db: Session, key: CartKey) -> Cart:
    """The repriced cart, ready for an order; an empty or missing cart is rejected."""
    cart = get_cart(db, key)
    if cart is None or not cart.items:
        raise ValidationError("Cart is empty")
    return cart
