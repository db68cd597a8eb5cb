"""
Shopper and admin authentication.

Stateless bearer JWTs returned in the response body. There is no refresh
token and no server-side session table; a token is valid until it expires
or its user is deactivated.
"""
from datetime import timedelta, datetime
from typing import Any, Callable, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import AuthError
from app.core.logging_config import get_logger
from app.core.security import (
    verify_password,
    create_access_token,
    decode_access_token,
    get_password_hash,
)
from app.models.user import User, RoleEnum
from app.schemas.auth import Token, RegisterRequest, UserResponse

logger = get_logger("auth")

router = APIRouter()
# auto_error=False so a missing token reaches get_current_user and gets the same 401 body
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


def _unauthorized(detail: str = "Invalid authentication credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def active_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email, User.is_active == True).first()


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Any:
    """Returns the current User. Annotated as Any so FastAPI does not use SQLAlchemy User as a Pydantic response type."""
    if not token:
        raise _unauthorized()
    try:
        payload = decode_access_token(token)
    except AuthError as e:
        logger.warning("token rejected: %s", e.message)
        raise _unauthorized()

    user = active_user_by_email(db, payload["sub"])
    if user is None:
        logger.warning("token subject %s is unknown or inactive", payload["sub"])
        raise _unauthorized()
    return user


def require_role(*roles: RoleEnum) -> Callable:
    """Dependency factory: the current user, provided their role is one of `roles`."""
    def checker(current_user: User = Depends(get_current_user)) -> Any:
        if current_user.role not in roles:
            logger.warning("user_id=%s role=%s denied, needs one of %s", current_user.id, current_user.role, roles)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
        return current_user
    return checker


require_admin = require_role(RoleEnum.ADMIN)


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Create a shopper account. Admins are created with scripts/create_admin.py."""
    if db.query(User.id).filter(User.email == body.email).first():
        raise HTTPException(status_code=400, detail="Email is already registered")

    user = User(
        email=body.email,
        hashed_password=get_password_hash(body.password),
        display_name=body.display_name.strip(),
        phone=body.phone,
        role=RoleEnum.USER,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("registered user_id=%s", user.id)
    return user


@router.post("/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """OAuth2 password form; `username` carries the email."""
    email = form_data.username.lower().strip()
    user = active_user_by_email(db, email)
    if user is None or not verify_password(form_data.password, user.hashed_password):
        logger.warning("login failed for email=%s", email)
        raise _unauthorized("Invalid email or password")

    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_access_token({"sub": user.email, "role": user.role.value}, expires_delta=expires)
    user.last_login = datetime.utcnow()
    db.commit()

    logger.info("login ok user_id=%s role=%s", user.id, user.role.value)
    return Token(access_token=token, expires_in=int(expires.total_seconds()))


@router.get("/me", response_model=UserResponse)
async def read_users_me(current_user: User = Depends(get_current_user)):
    return current_user
