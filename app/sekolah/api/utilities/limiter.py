# app/sekolah/api/utilities/limiter.py

from fastapi import Request
import jwt

from slowapi import Limiter
from slowapi.util import get_remote_address

from ...config.config import settings

def get_limiter_key(request: Request) -> str:
    """
    Rate limit key: the profile id from a bearer token when one decodes,
    otherwise the client IP.
    """
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer ") and settings.SECRET_KEY:
        token = auth_header.split(" ")[1]
        try:
            # Expiry does not matter here, only the identity.
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM],
                options={"verify_exp": False, "verify_aud": False}
            )
            subject = payload.get("sub")
            if subject:
                return str(subject)
        except jwt.PyJWTError:
            # Undecodable token: fall back to the IP based limit.
            pass

    return get_remote_address(request)

# In-memory storage by default; point RATE_LIMITER_REDIS_URL at Redis in production.
limiter = Limiter(key_func=get_limiter_key, storage_uri=settings.RATE_LIMITER_REDIS_URL)
