from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from citadel.core.config import Settings, get_settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> Optional[int]:
    """Decode a bearer token issued by the OAuth provider.

    Returns the user id from the "sub" claim, or None when the token is
    invalid, expired or carries no usable subject.
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    subject = payload.get("sub")
    if subject is None:
        return None
    try:
        return int(subject)
    except (TypeError, ValueError):
        return None
