from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.platform.config.di import Container
from src.service.reservation.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


bearer_scheme = HTTPBearer(auto_error=False)


@inject
async def get_current_user_id(
    jwt_auth: JwtAuth = Depends(Provide[Container.jwt_auth]),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Stateless: the caller is whoever the bearer token names, no DB lookup"""
    return jwt_auth.get_user_id_from_jwt(credentials.credentials if credentials else None)
