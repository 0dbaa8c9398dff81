"""
Authentication API - password login, signed session tokens, role gate
"""
import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import bcrypt
import jwt
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel

from canteen.config import get_settings
from canteen.models.user import User, UserRole
from canteen.services.store import CanteenStore, get_store

settings = get_settings()
logger = logging.getLogger(__name__)

router = APIRouter()

REQUIRED_CLAIMS = ("sub", "role", "email", "name", "department")


# --- Pydantic Schemas ---

class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    department: str

    class Config:
        from_attributes = True


# --- Passwords ---

def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:72]


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        return False


@lru_cache()
def _dummy_hash() -> str:
    return get_password_hash("karmic-canteen-timing-guard")


# --- Session tokens ---

def create_session_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Signed token carrying the user's identity, valid for 7 days by default"""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": user.id,
        "role": user.role.value,
        "email": user.email,
        "name": user.name,
        "department": user.department,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_session_token(token: str) -> Optional[dict]:
    """Payload of a valid token, otherwise None. Never a partial identity."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"require": ["exp", *REQUIRED_CLAIMS]},
        )
    except jwt.PyJWTError as e:
        logger.debug(f"Rejected session token: {e}")
        return None

    if payload.get("role") not in {r.value for r in UserRole}:
        logger.debug("Rejected session token: unknown role")
        return None
    return payload


def get_session_token(request: Request) -> Optional[str]:
    """Cookie first; the Authorization header is only consulted when there is no cookie"""
    cookie_token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if cookie_token is not None:
        return cookie_token

    header = request.headers.get("authorization")
    if not header:
        return None
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer" or not value:
        return None
    return value.strip()


# --- Dependencies ---

async def get_current_user(
    request: Request,
    store: CanteenStore = Depends(get_store),
) -> User:
    credentials_exception = HTTPException(
        status_code=401,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )
    token = get_session_token(request)
    if not token:
        raise credentials_exception

    payload = verify_session_token(token)
    if payload is None:
        raise credentials_exception

    user = await store.get_user(payload["sub"])
    if user is None:
        raise credentials_exception
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Forbidden")
    return current_user


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )


# --- Endpoints ---

@router.post("/login")
async def login(
    data: LoginRequest,
    response: Response,
    store: CanteenStore = Depends(get_store),
):
    """Exchange email + password for a session cookie (and a bearer token)"""
    if not data.email.strip() or not data.password:
        raise HTTPException(status_code=400, detail="Email and password are required.")

    user = await store.find_user_by_email(data.email)
    if not user:
        # Same bcrypt cost as a real check, so timing does not reveal which emails exist
        verify_password(data.password, _dummy_hash())
        logger.info("Failed login for unknown email")
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    if not verify_password(data.password, user.password_hash):
        logger.info(f"Failed login for user {user.id}")
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    token = create_session_token(user)
    set_session_cookie(response, token)
    logger.info(f"User {user.id} ({user.role.value}) logged in")

    return {
        "user": UserResponse.model_validate(user),
        "access_token": token,
        "token_type": "bearer",
    }


@router.post("/logout")
async def logout(response: Response):
    """Expire the session cookie. Issued tokens stay valid until they expire."""
    clear_session_cookie(response)
    return {"success": True}


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)):
    return {"user": UserResponse.model_validate(current_user)}
