# FILE: backend/vyapar/api/endpoints/dependencies.py
# LOCALVYAPAR - AUTH DEPENDENCIES
# 1. Bearer token -> UserInDB, re-read from the database on every request.
# 2. Role guards compare UserRole members, never raw strings.
# 3. Provider failures map to fixed HTTP codes in one place.

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from typing import Annotated, Callable, Optional
from pymongo.database import Database

from ...core.db import get_db
from ...core.exceptions import ConfigurationError, ImageDecodeError, ProviderError
from ...core.security import decode_token
from ...services import user_service
from ...models.user import UserInDB, UserRole

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)

def user_from_token(db: Database, token: str) -> UserInDB:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    payload = decode_token(token, expected_type="access")
    user_id: Optional[str] = payload.get("id")
    if user_id is None:
        raise credentials_exception

    user = user_service.get_user_by_id(db, user_id)
    if user is None:
        raise credentials_exception
    return user

def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Database = Depends(get_db)
) -> UserInDB:
    return user_from_token(db, token)

def get_optional_user(
    token: Annotated[Optional[str], Depends(optional_oauth2_scheme)],
    db: Database = Depends(get_db)
) -> Optional[UserInDB]:
    if not token:
        return None
    return user_from_token(db, token)

def require_roles(*roles: UserRole) -> Callable[[UserInDB], UserInDB]:
    allowed = set(roles)

    def guard(current_user: Annotated[UserInDB, Depends(get_current_user)]) -> UserInDB:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="The user does not have sufficient privileges."
            )
        return current_user

    return guard

get_current_admin_user = require_roles(UserRole.ADMIN)
get_current_staff_user = require_roles(UserRole.ADMIN, UserRole.MODERATOR)
get_current_business_user = require_roles(UserRole.BUSINESS)
get_current_delivery_user = require_roles(UserRole.DELIVERY)
get_current_customer_user = require_roles(UserRole.CUSTOMER)

def provider_http_error(e: Exception) -> HTTPException:
    if isinstance(e, ConfigurationError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    if isinstance(e, ImageDecodeError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, ProviderError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unexpected error")
