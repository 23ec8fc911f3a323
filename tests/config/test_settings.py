"""Tests for settings and logging configuration."""

import pytest
from pydantic import ValidationError

from neo_authz.config import AuthzSettings, LoggingConfig, setup_logging
from neo_authz.config.logging_config import get_log_level_from_verbosity


class TestAuthzSettings:
    
    def test_defaults(self):
        settings = AuthzSettings()
        
        assert settings.decision_ttl_seconds == 300
        assert settings.local_ttl_seconds == 30
        assert not settings.is_shared_cache_enabled
    
    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("NEO_AUTHZ_REDIS_URL", "redis://cache:6379/0")
        monkeypatch.setenv("NEO_AUTHZ_DECISION_TTL_SECONDS", "60")
        
        settings = AuthzSettings()
        
        assert settings.is_shared_cache_enabled
        assert settings.decision_ttl_seconds == 60
    
    def test_rejects_non_positive_ttl(self):
        with pytest.raises(ValidationError):
            AuthzSettings(decision_ttl_seconds=0)


class TestLoggingConfig:
    
    @pytest.mark.parametrize("verbosity,level", [
        ("QUIET", "ERROR"),
        ("NORMAL", "WARNING"),
        ("VERBOSE", "INFO"),
        ("DEBUG", "DEBUG"),
    ])
    def test_verbosity_levels(self, verbosity, level):
        assert get_log_level_from_verbosity(verbosity) == level
    
    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("LOG_VERBOSITY", "QUIET")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        
        config = LoggingConfig.build_config()
        
        assert config["root"]["level"] == "DEBUG"
        assert config["loggers"][LoggingConfig.AUDIT_MODULE]["level"] == "INFO"
    
    def test_hot_path_modules_are_quiet(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("LOG_VERBOSITY", "NORMAL")
        
        config = LoggingConfig.build_config()
        
        for module in LoggingConfig.DEFAULT_QUIET_MODULES:
            assert config["loggers"][module]["level"] == "WARNING"
    
    def test_arguments_override_environment(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        
        config = LoggingConfig.build_config(level="info", log_format="detailed")
        
        assert config["root"]["level"] == "INFO"
        assert "%(filename)s" in config["formatters"]["default"]["format"]
    
    def test_setup_applies_dict_config(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        applied = []
        monkeypatch.setattr("logging.config.dictConfig", applied.append)
        
        setup_logging(verbosity="VERBOSE")
        
        assert len(applied) == 1
        assert applied[0]["root"]["level"] == "INFO"
