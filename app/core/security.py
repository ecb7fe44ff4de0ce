from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import settings
from app.schemas.user import TokenPayload

ALGORITHM = "HS256"
TOKEN_TYPE_ACCESS = "access"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(user_id: UUID, expires_delta: timedelta | None = None) -> str:
    """Issue a bearer token whose subject is the user id."""
    if expires_delta is None:
        expires_delta = timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    expire = datetime.now(timezone.utc) + expires_delta
    claims = {
        "sub": str(user_id),
        "exp": int(expire.timestamp()),
        "type": TOKEN_TYPE_ACCESS,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> TokenPayload | None:
    """Return the token's claims, or None when it is invalid, expired or not an access token."""
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if claims.get("type") != TOKEN_TYPE_ACCESS or "sub" not in claims:
        return None
    return TokenPayload(sub=claims["sub"], exp=claims["exp"])
