"""
Unit tests for Settings

Test Coverage:
1. The shipped .env.example loads as-is
2. BACKEND_CORS_ORIGINS accepts a comma separated list or a JSON list
"""

import pytest

from src.platform.config.core_setting import _PROJECT_ROOT, Settings


pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _no_cors_env(monkeypatch):
    monkeypatch.delenv('BACKEND_CORS_ORIGINS', raising=False)


class TestSettings:
    def test_env_example_loads(self):
        loaded = Settings(_env_file=str(_PROJECT_ROOT / '.env.example'))  # type: ignore

        assert loaded.BACKEND_CORS_ORIGINS == ['http://localhost:3000']
        assert loaded.SECRET_KEY.get_secret_value() == 'change_me'

    @pytest.mark.parametrize(
        'raw',
        [
            'http://a.test, http://b.test',
            '["http://a.test", "http://b.test"]',
        ],
    )
    def test_cors_origins_from_env(self, monkeypatch, raw):
        monkeypatch.setenv('BACKEND_CORS_ORIGINS', raw)

        loaded = Settings(_env_file=None)  # type: ignore

        assert loaded.BACKEND_CORS_ORIGINS == ['http://a.test', 'http://b.test']

    def test_cors_origins_default_to_empty(self):
        assert Settings(_env_file=None).BACKEND_CORS_ORIGINS == []  # type: ignore
