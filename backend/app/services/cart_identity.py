"""
Cart identity resolution.

Every cart request is mapped to exactly one cart key, in this order:
1. a valid bearer token for an active user   -> {"user": user_id}
2. a guest_cart_id cookie                    -> {"guestCartId": cookie}
3. neither: mint a guest id, set the cookie  -> {"guestCartId": new_id}

A bad or expired token is not an error here; the request simply continues
as a guest.
"""
import secrets
from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import AuthError
from app.core.logging_config import get_logger
from app.core.security import decode_access_token, extract_bearer_token
from app.models.user import User

logger = get_logger("cart_identity")


@dataclass(frozen=True)
class CartKey:
    user_id: Optional[int] = None
    guest_cart_id: Optional[str] = None

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    def as_filter(self) -> dict:
        if self.user_id is not None:
            return {"user": self.user_id}
        return {"guestCartId": self.guest_cart_id}


def new_guest_cart_id() -> str:
    return secrets.token_hex(12)


def _user_from_token(db: Session, token: str) -> User:
    payload = decode_access_token(token)
    user = db.query(User).filter(
        User.email == payload["sub"],
        User.is_active == True
    ).first()
    if user is None:
        raise AuthError("Token subject is not an active user")
    return user


def set_guest_cookie(response: Response, guest_cart_id: str) -> None:
    production = settings.is_production
    response.set_cookie(
        key=settings.GUEST_CART_COOKIE,
        value=guest_cart_id,
        max_age=settings.GUEST_CART_MAX_AGE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=production,
        samesite="none" if production else "lax",
    )


def resolve_cart_key(
    db: Session,
    authorization: Optional[str],
    guest_cookie: Optional[str],
    response: Response,
) -> CartKey:
    token = extract_bearer_token(authorization)
    if token:
        try:
            user = _user_from_token(db, token)
            return CartKey(user_id=user.id)
        except AuthError as e:
            logger.info(f"Cart token rejected ({e.message}), continuing as guest")

    if guest_cookie:
        return CartKey(guest_cart_id=guest_cookie)

    guest_cart_id = new_guest_cart_id()
    set_guest_cookie(response, guest_cart_id)
    logger.info(f"Issued new guest cart id {guest_cart_id}")
    return CartKey(guest_cart_id=guest_cart_id)


def identify_cart(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> CartKey:
    """FastAPI dependency: resolve the cart key and attach it to request.state.cart_query."""
    key = resolve_cart_key(
        db,
        request.headers.get("authorization"),
        request.cookies.get(settings.GUEST_CART_COOKIE),
        response,
    )
    request.state.cart_query = key.as_filter()
    return key
