from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import List

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.security import security, AuthorizationError, UserRole
from ..services.appointment_service import AppointmentService
from ..services.token_service import Identity, TokenService

async def get_bearer_token(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> str:
    """Raw bearer token from the Authorization header."""
    return credentials.credentials

async def get_current_identity(
    token: str = Depends(get_bearer_token)
) -> Identity:
    """Resolve the caller's doctor or patient identity."""
    return TokenService().resolve(token)

# Role-based access control dependencies
def require_role(allowed_roles: List[UserRole]):
    """Create a dependency that requires specific user roles."""
    async def role_checker(
        identity: Identity = Depends(get_current_identity)
    ) -> Identity:
        if identity.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return identity

    return role_checker

async def get_doctor_identity(
    identity: Identity = Depends(require_role([UserRole.DOCTOR]))
) -> Identity:
    """Require doctor role."""
    return identity

async def get_patient_identity(
    identity: Identity = Depends(require_role([UserRole.PATIENT]))
) -> Identity:
    """Require patient role."""
    return identity

def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db)

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Per-IP hourly limit on booking requests."""
    client_ip = request.client.host
    key = f"rate_limit:booking:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, 3600, 1)
    else:
        if int(current_requests) >= settings.RATE_LIMIT_PER_HOUR:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)
