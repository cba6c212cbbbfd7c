"""Bearer-token verification and course-role access-control dependencies.

Access tokens are issued by the campus login service; this backend only
verifies them.  ``create_access_token`` exists for seed scripts and tests.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from officehours.config import settings
from officehours.database import get_db
from officehours.models.course import Role, UserCourse
from officehours.models.user import User

security = HTTPBearer()

ALGORITHM = "HS256"


# ── Token helpers ────────────────────────────────────────────


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None,
) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({
        "exp": expire,
        "type": "access",
        "jti": uuid.uuid4().hex,
    })
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and return the JWT payload. Raises JWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])


# ── User dependencies ───────────────────────────────────────


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode the bearer token and return the user it names."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(credentials.credentials)
        user_id_raw = payload.get("sub")
        if user_id_raw is None or payload.get("type") != "access":
            raise credentials_exception
        user_id = int(user_id_raw)
    except (JWTError, ValueError, TypeError):
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise credentials_exception
    return user


# ── Course role checks ──────────────────────────────────────


async def get_course_role(db: AsyncSession, user_id: int, course_id: int) -> Role | None:
    """The user's role in the course, or None if not enrolled."""
    result = await db.execute(
        select(UserCourse.role).where(
            UserCourse.user_id == user_id,
            UserCourse.course_id == course_id,
        )
    )
    return result.scalar_one_or_none()


async def require_course_role(
    db: AsyncSession, user: User, course_id: int, *roles: Role,
) -> Role:
    """Return the user's role in the course, raising 403 unless it is one of ``roles``."""
    role = await get_course_role(db, user.id, course_id)
    if role is None or role not in roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )
    return role
