from pydantic import BaseModel

from ..core.exceptions import InvalidToken
from ..core.security import UserRole, verify_token

class Identity(BaseModel):
    role: UserRole
    user_id: int

    @property
    def is_doctor(self) -> bool:
        return self.role == UserRole.DOCTOR

    @property
    def is_patient(self) -> bool:
        return self.role == UserRole.PATIENT

class TokenService:
    """Maps an opaque session token to a doctor or patient identity."""

    def resolve(self, token: str) -> Identity:
        if not token:
            raise InvalidToken("Missing token")

        token_payload = verify_token(token)
        if not token_payload:
            raise InvalidToken("Invalid or expired token")

        if token_payload.token_type != "access":
            raise InvalidToken("Invalid token type")

        if token_payload.sub is None or token_payload.role not in {role.value for role in UserRole}:
            raise InvalidToken("Invalid token payload")

        return Identity(role=UserRole(token_payload.role), user_id=token_payload.sub)
