"""
Test Configuration and Fixtures

This module provides:
- Test environment variables, set before any application module reads settings
- A throwaway SQLite database (aiosqlite) per test session for integration tests
- Service fixtures for the reservation engine (imported from loader.py)

Architecture:
- Unit tests (pytestmark = pytest.mark.unit): in-memory unit of work, no database
- Integration tests: SQLAlchemy repositories and the HTTP app on aiosqlite
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# settings is instantiated at import time of src.platform.config.core_setting
# =============================================================================
import os
from pathlib import Path
import tempfile


def _early_setup_test_environment() -> None:
    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')
    db_dir = Path(tempfile.mkdtemp(prefix=f'reservation_engine_{worker_id}_'))
    os.environ['DATABASE_URL_ASYNC'] = f'sqlite+aiosqlite:///{db_dir / "test.db"}'

    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    # The HTTP tests drive deferred tasks through /api/task explicitly
    os.environ['TASK_WORKER_ENABLED'] = 'false'
    os.environ['NOTIFIER_WEBHOOK_URL'] = ''
    os.environ['TASK_API_TOKEN'] = 'test-task-token'
    os.environ.setdefault('TRANSACTION_RETRY_BASE_DELAY', '0')


_early_setup_test_environment()

from collections.abc import Generator  # noqa: E402
from typing import Any  # noqa: E402

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402


# =============================================================================
# Session-scoped Fixtures
# =============================================================================
@pytest.fixture(scope='session')
def client() -> Generator[Any, None, None]:
    from test.test_main import app

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture(scope='session')
def jwt_auth() -> Any:
    from src.service.reservation.driving_adapter.http_controller.auth.jwt_auth import JwtAuth

    return JwtAuth()


@pytest.fixture
def auth_headers(jwt_auth: Any) -> Any:
    def _headers(user_id: str) -> dict[str, str]:
        return {'Authorization': f'Bearer {jwt_auth.create_jwt_token(user_id=user_id)}'}

    return _headers


# =============================================================================
# Load service fixtures
# =============================================================================
from test.loader import *  # noqa: E402, F401, F403
