"""
Shared-secret guard for the scheduler-invoked task endpoints

The external task queue sends settings.TASK_API_TOKEN in the X-Task-Token
header. With no token configured the endpoints are closed.
"""

import hmac
from typing import Optional

from fastapi import Depends
from fastapi.security import APIKeyHeader

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import PermissionDeniedError, UnauthenticatedError


task_token_header = APIKeyHeader(name='X-Task-Token', auto_error=False)


async def verify_task_token(token: Optional[str] = Depends(task_token_header)) -> None:
    expected = settings.TASK_API_TOKEN.get_secret_value()
    if not expected:
        raise PermissionDeniedError('Task endpoints are disabled')
    if not token or not hmac.compare_digest(token.encode(), expected.encode()):
        raise UnauthenticatedError('Invalid task token')
