"""
Тесты настроек и фабрики приложения
"""
import importlib

import pytest
from pydantic import ValidationError

from app.core.config import Settings


class TestSettings:
    """Тесты для Settings"""

    def test_cors_origins_from_comma_separated_env(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000, http://127.0.0.1:3000")
        settings = Settings(JWT_SECRET="x", _env_file=None)
        assert settings.CORS_ORIGINS == ["http://localhost:3000", "http://127.0.0.1:3000"]

    def test_cors_origins_single_value(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "https://shop.example.com")
        settings = Settings(JWT_SECRET="x", _env_file=None)
        assert settings.CORS_ORIGINS == ["https://shop.example.com"]

    def test_cors_origins_list_argument(self):
        settings = Settings(JWT_SECRET="x", CORS_ORIGINS=["http://a", "http://b"], _env_file=None)
        assert settings.CORS_ORIGINS == ["http://a", "http://b"]

    def test_env_file_values(self, tmp_path, monkeypatch):
        for name in ("JWT_SECRET", "CORS_ORIGINS", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("JWT_SECRET=from-file\nCORS_ORIGINS=http://a,http://b\nLOG_LEVEL=DEBUG\n")
        settings = Settings(_env_file=str(env_file))
        assert settings.JWT_SECRET == "from-file"
        assert settings.CORS_ORIGINS == ["http://a", "http://b"]
        assert settings.LOG_LEVEL == "DEBUG"

    def test_jwt_secret_required(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestAppFactory:
    """Тесты для create_app"""

    def test_import_has_no_side_effects(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)
        import app.main

        module = importlib.reload(app.main)
        assert not hasattr(module, "app")
        assert callable(module.create_app)

    def test_settings_stored_on_state(self, settings):
        from app.main import create_app

        application = create_app(settings)
        assert application.state.settings is settings
        assert application.state.engine is not None
        assert application.state.session_factory is not None
