import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import jwt
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError

from ..config.config import settings
from ..db.db_client import AsyncPostgresClient
from ..db.redis_client import RedisClient
from ..models.db_models import Profile, Role
from ..models.redis_models import UserSessionRedis
from .dependencies import get_db_client, get_redis_client
from .schemas.user import ProfileResponse, TokenData
from .utilities.limiter import limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])
bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: timedelta) -> str:
    """Signs ``data`` with an expiry. Tokens are normally issued by the auth provider; this is used by tooling and tests."""
    to_encode = data.copy()
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


async def _load_profile(profile_id: UUID, redis_client: RedisClient, db_client: AsyncPostgresClient):
    """Cached profile first, database second. A Redis outage only costs the cache."""
    try:
        session = await redis_client.get_user_session(str(profile_id))
        if session:
            return session.user_data
    except Exception:
        logger.warning(f"Could not read cached profile for '{profile_id}'.", exc_info=True)

    profile = await db_client.get_profile(profile_id)
    if profile is None:
        return None

    ttl = settings.USER_SESSION_TTL_SECONDS
    now = datetime.now(timezone.utc)
    try:
        await redis_client.save_user_session(
            UserSessionRedis(user_data=profile, session_id=uuid4(), session_start_time=now, session_end_time=now + timedelta(seconds=ttl)),
            ttl=ttl
        )
    except Exception:
        logger.warning(f"Could not cache profile for '{profile_id}'.", exc_info=True)
    return profile


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    redis_client: RedisClient = Depends(get_redis_client),
    db_client: AsyncPostgresClient = Depends(get_db_client)
) -> Profile:
    """
    Decodes the bearer token, takes the profile id from ``sub`` and returns the matching profile.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    try:
        payload = jwt.decode(
            credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM],
            options={"verify_aud": False}
        )
        token_data = TokenData.model_validate(payload)
        if token_data.sub is None:
            logger.warning("Token is valid but missing 'sub'.")
            raise credentials_exception
        profile_id = UUID(token_data.sub)
    except (jwt.PyJWTError, ValidationError, ValueError) as e:
        logger.warning(f"Token validation error: {e}")
        raise credentials_exception

    profile = await _load_profile(profile_id, redis_client, db_client)
    if profile is None:
        logger.warning(f"Token subject '{profile_id}' has no profile. Denying access.")
        raise credentials_exception
    return profile


def require_roles(*roles: Role):
    """Dependency factory: the current user must hold one of ``roles``."""
    allowed = {role.value for role in roles}

    async def checker(user: Profile = Depends(get_current_user)) -> Profile:
        if user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not allowed to perform this operation.")
        return user

    return checker


require_admin = require_roles(Role.ADMIN)


@router.get("/me", response_model=ProfileResponse)
@limiter.limit("60/minute")
async def read_current_user(request: Request, user: Profile = Depends(get_current_user)):
    return user


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
async def logout(
    request: Request,
    user: Profile = Depends(get_current_user),
    redis_client: RedisClient = Depends(get_redis_client)
):
    """Drops the cached profile so the next request reads it from the database again."""
    logger.info(f"User '{user.id}' logging out.")
    try:
        await redis_client.delete_user_session(str(user.id))
    except Exception:
        logger.error(f"Error during logout for user '{user.id}'.", exc_info=True)
        raise HTTPException(status_code=500, detail="An error occurred during logout.")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
