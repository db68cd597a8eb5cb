"""
Cart endpoints for shoppers and guests alike.

The cart routes depend on identify_cart, which resolves the cart key from the
bearer token or the guest_cart_id cookie (issuing the cookie when missing).
Guest preview prices a basket the client keeps locally and needs no key;
checkout and clear are for signed-in shoppers only.
"""
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.endpoints.auth import get_current_user
from app.core.database import get_db
from app.models.cart import Cart
from app.models.invoice import PaymentMethodEnum, ShippingMethodEnum
from app.models.user import User
from app.schemas.cart import (
    CartAddRequest,
    CartUpdateRequest,
    CartResponse,
    CartItemResponse,
    CartProductInfo,
    AppliedDiscount,
    CheckoutResponse,
    GuestPreviewRequest,
    ShippingOption,
)
from app.services import cart_service, invoice_service
from app.services.cart_identity import CartKey, identify_cart

router = APIRouter()


def _cart_response(cart: Optional[Cart], key: CartKey) -> CartResponse:
    if cart is None:
        return CartResponse(user_id=key.user_id, guest_cart_id=key.guest_cart_id)
    return CartResponse(
        id=cart.id,
        user_id=cart.user_id,
        guest_cart_id=cart.guest_cart_id,
        items=[
            CartItemResponse(
                product=CartProductInfo.model_validate(item.product),
                quantity=item.quantity,
                price_original=item.price_original,
                price_discount=item.price_discount,
                total_price=item.total_price,
                applied_discount=AppliedDiscount(
                    discount_id=item.applied_discount_id,
                    program_name=item.program_name,
                    discount_percent=item.discount_percent,
                    saved_amount=item.saved_amount,
                ) if item.applied_discount_id else None,
            )
            for item in cart.items
        ],
        total_quantity=cart.total_quantity,
        total_original_price=cart.total_original_price,
        total_discount_amount=cart.total_discount_amount,
        final_total_price=cart.final_total_price,
    )


def _preview_response(preview: cart_service.CartPreview) -> CartResponse:
    return CartResponse(
        items=[
            CartItemResponse(
                product=CartProductInfo.model_validate(product),
                quantity=quantity,
                price_original=line.price_original,
                price_discount=line.price_discount,
                total_price=line.total_price,
                applied_discount=AppliedDiscount(
                    discount_id=line.applied.discount.id,
                    program_name=line.applied.program_name,
                    discount_percent=line.discount_percent,
                    saved_amount=line.saved_amount,
                ) if line.applied else None,
            )
            for product, quantity, line in preview.lines
        ],
        total_quantity=preview.total_quantity,
        total_original_price=preview.total_original_price,
        total_discount_amount=preview.total_discount_amount,
        final_total_price=preview.final_total_price,
    )


@router.post("/guest-preview", response_model=CartResponse)
async def guest_preview(body: GuestPreviewRequest, db: Session = Depends(get_db)):
    """Price a guest's local basket against running programs. Nothing is stored."""
    preview = cart_service.preview_items(db, [(i.product_id, i.quantity) for i in body.items])
    return _preview_response(preview)


@router.get("/", response_model=CartResponse)
async def get_cart(
    key: CartKey = Depends(identify_cart),
    db: Session = Depends(get_db),
):
    """Current cart, repriced against running programs; an empty shape if none exists yet."""
    return _cart_response(cart_service.get_cart(db, key), key)


@router.post("/add", response_model=CartResponse)
async def add_to_cart(
    body: CartAddRequest,
    key: CartKey = Depends(identify_cart),
    db: Session = Depends(get_db),
):
    cart = cart_service.add_to_cart(db, key, body.product_id, body.quantity)
    return _cart_response(cart, key)


@router.put("/update", response_model=CartResponse)
async def update_cart_item(
    body: CartUpdateRequest,
    key: CartKey = Depends(identify_cart),
    db: Session = Depends(get_db),
):
    """Set a line's quantity; 0 removes the line."""
    cart = cart_service.update_cart_item(db, key, body.product_id, body.quantity)
    return _cart_response(cart, key)


@router.delete("/remove/{product_id}", response_model=CartResponse)
async def remove_cart_item(
    product_id: int,
    key: CartKey = Depends(identify_cart),
    db: Session = Depends(get_db),
):
    cart = cart_service.remove_cart_item(db, key, product_id)
    return _cart_response(cart, key)


@router.get("/checkout", response_model=CheckoutResponse)
async def proceed_to_checkout(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """The priced cart plus the payment and shipping choices for placing an order."""
    key = CartKey(user_id=current_user.id)
    cart = cart_service.checkout_cart(db, key)
    return CheckoutResponse(
        message="Ready for checkout",
        cart=_cart_response(cart, key),
        payment_options=[m.value for m in PaymentMethodEnum],
        shipping_options=[
            ShippingOption(method=m.value, fee=invoice_service.shipping_fee_for(m))
            for m in ShippingMethodEnum
        ],
    )


@router.post("/clear")
async def clear_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    cart_service.clear_cart(db, CartKey(user_id=current_user.id))
    return {"message": "Cart cleared"}
