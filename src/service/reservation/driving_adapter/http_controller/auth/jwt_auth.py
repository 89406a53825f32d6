"""
Bearer JWT authentication

Caller identity is the `user_id` claim of an HS256 token signed with
settings.SECRET_KEY. Tokens are issued elsewhere; create_jwt_token exists for
tooling and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import jwt

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import UnauthenticatedError


class JwtAuth:
    def __init__(self) -> None:
        self.secret = settings.SECRET_KEY.get_secret_value()
        self.algorithm = settings.ALGORITHM
        self.token_expire_days = settings.ACCESS_TOKEN_EXPIRE_DAYS

    def create_jwt_token(self, *, user_id: str) -> str:
        payload = {
            'sub': user_id,
            'user_id': user_id,
            'iat': datetime.now(timezone.utc),
            'exp': datetime.now(timezone.utc) + timedelta(days=self.token_expire_days),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_jwt_token(self, token: str) -> Dict:
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.PyJWTError:
            raise UnauthenticatedError('Invalid token')

    def get_user_id_from_jwt(self, token: Optional[str]) -> str:
        if not token:
            raise UnauthenticatedError('Not authenticated')

        user_id = self.decode_jwt_token(token).get('user_id')
        if not user_id:
            raise UnauthenticatedError('Invalid token')
        return str(user_id)


