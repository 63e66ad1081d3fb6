from typing import Any, Callable, Dict, List
import logging
import os

from fastapi import Depends, HTTPException, status, Request
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError
from dotenv import load_dotenv

from exceptions import PermissionDeniedError

load_dotenv()

logger = logging.getLogger("auth")

# === Token Configuration ===
# Tokens are issued by the identity service; this API only verifies them.
# No default secret: without JWT_SECRET_KEY every request is rejected.
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE")
JWT_ISSUER = os.getenv("JWT_ISSUER")
ENVIRONMENT = os.getenv("ENVIRONMENT", "production")

WILDCARD_PERMISSION = "*"


def decode_token(token: str) -> Dict[str, Any]:
    options = {"verify_aud": JWT_AUDIENCE is not None}
    return jwt.decode(
        token,
        JWT_SECRET_KEY,
        algorithms=[JWT_ALGORITHM],
        audience=JWT_AUDIENCE,
        issuer=JWT_ISSUER,
        options=options,
    )


def get_current_user(request: Request) -> Dict[str, Any]:
    """
    FastAPI dependency to validate the bearer JWT from the Authorization header.

    Usage:
        @router.get("/secure-data")
        def secure_endpoint(user: dict = Depends(get_current_user)):
            ...
    """
    if not JWT_SECRET_KEY:
        logger.error("JWT_SECRET_KEY is not configured; rejecting request")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication is not configured",
        )

    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header is missing",
        )

    # The token is expected to be in the format "Bearer <token>"
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )

    try:
        payload = decode_token(parts[1])
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except JWTClaimsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token claims: {e}"
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token validation failed: {e}"
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject",
        )
    return payload


def get_user_identifier(user: Dict[str, Any]) -> str:
    """Stable identifier stamped into created_by / posted_by columns."""
    return str(user.get("sub") or user.get("username") or user.get("email"))


def has_permission(user: Dict[str, Any], permission: str) -> bool:
    # In development, all authenticated users have all permissions
    if ENVIRONMENT == "development":
        return True
    granted: List[str] = user.get("permissions") or []
    return WILDCARD_PERMISSION in granted or permission in granted


def require_permission(permission: str) -> Callable[..., Dict[str, Any]]:
    """Dependency factory: resolves to the current user when it holds `permission`."""

    def dependency(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if not has_permission(user, permission):
            logger.warning(f"User {get_user_identifier(user)} denied '{permission}'")
            raise PermissionDeniedError(f"Missing required permission: {permission}")
        return user

    return dependency
