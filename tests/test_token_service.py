from datetime import datetime, timedelta

import pytest
from jose import jwt

from medbook.core.config import settings
from medbook.core.exceptions import InvalidToken
from medbook.core.security import UserRole, create_access_token
from medbook.services.token_service import TokenService


def _encode(claims):
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


class TestTokenService:

    def test_resolves_doctor_identity(self):
        identity = TokenService().resolve(create_access_token(7, UserRole.DOCTOR))

        assert identity.role == UserRole.DOCTOR
        assert identity.user_id == 7
        assert identity.is_doctor and not identity.is_patient

    def test_resolves_patient_identity(self):
        identity = TokenService().resolve(create_access_token(3, UserRole.PATIENT))

        assert identity.is_patient
        assert identity.user_id == 3

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_rejects_malformed_tokens(self, token):
        with pytest.raises(InvalidToken):
            TokenService().resolve(token)

    def test_rejects_expired_token(self):
        token = create_access_token(7, UserRole.DOCTOR, expires_delta=timedelta(minutes=-5))

        with pytest.raises(InvalidToken):
            TokenService().resolve(token)

    def test_rejects_token_signed_with_another_key(self):
        token = jwt.encode(
            {"sub": "7", "role": "doctor", "token_type": "access"},
            "some-other-secret",
            algorithm=settings.ALGORITHM
        )

        with pytest.raises(InvalidToken):
            TokenService().resolve(token)

    def test_rejects_non_access_token(self):
        """Only access tokens identify a caller."""
        token = _encode({
            "sub": "7",
            "role": "doctor",
            "token_type": "refresh",
            "exp": datetime.utcnow() + timedelta(minutes=5)
        })

        with pytest.raises(InvalidToken):
            TokenService().resolve(token)

    def test_rejects_unknown_role(self):
        token = _encode({
            "sub": "7",
            "role": "admin",
            "token_type": "access",
            "exp": datetime.utcnow() + timedelta(minutes=5)
        })

        with pytest.raises(InvalidToken):
            TokenService().resolve(token)

    def test_rejects_non_numeric_subject(self):
        token = _encode({
            "sub": "house@example.com",
            "role": "doctor",
            "token_type": "access",
            "exp": datetime.utcnow() + timedelta(minutes=5)
        })

        with pytest.raises(InvalidToken):
            TokenService().resolve(token)
