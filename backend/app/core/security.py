from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
import bcrypt
import secrets
import hashlib
from app.core.config import settings
from app.core.exceptions import AuthError


def hash_sha256(text: str) -> str:
    """Hash text using SHA-256."""
    return hashlib.sha256(text.encode('utf-8')).hexdigest()


def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes; a hex SHA-256 digest is 64
    return hash_sha256(password).encode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plaintext password against the stored bcrypt(SHA-256(password)) hash.
    Malformed stored hashes count as a mismatch.
    """
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode('utf-8'))
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    """Hash a plaintext password for storage: bcrypt over its SHA-256 hex digest."""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(_password_bytes(password), salt)
    return hashed.decode('utf-8')


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow(),
        "jti": secrets.token_urlsafe(32),
        "type": "access"
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, verify_exp: bool = True) -> dict:
    """Decode and verify an access token. Raises AuthError when it is invalid, expired or not an access token."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_exp": verify_exp}
        )
    except JWTError as e:
        raise AuthError(detail=str(e)) from e
    if payload.get("type") != "access":
        raise AuthError("Not an access token")
    if not payload.get("sub"):
        raise AuthError("Token has no subject")
    return payload


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an 'Authorization: Bearer <token>' header value, or None."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
