"""Unit tests for engine configuration.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

import json
import logging

import pytest
import yaml

from grc_policy.config import EngineConfig, LoggingConfig, build_enforcer, resolve_environment
from grc_policy.exceptions import ConfigurationError, PolicyViolation
from grc_policy.pdp import Effect, PolicyEnforcer


@pytest.fixture
def clean_env(monkeypatch):
    """Remove GRC_ENVIRONMENT for the duration of a test."""
    monkeypatch.delenv("GRC_ENVIRONMENT", raising=False)
    return monkeypatch


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo configure_logging() side effects on the package logger."""
    logger = logging.getLogger("grc_policy")
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestEngineConfig:
    """Tests for EngineConfig defaults and loading."""

    def test_defaults(self):
        """Given no values, defaults apply."""
        config = EngineConfig()

        assert config.policies_dir == "etc/policies"
        assert config.default_policy == "grc-baseline.yml"
        assert config.environment is None
        assert config.load_timeout_seconds == 10.0
        assert config.logging.log_dir is None

    def test_load_from_file(self, tmp_path):
        """Given a valid JSON file, loads it."""
        # Arrange
        path = tmp_path / "grc-policy.json"
        path.write_text(json.dumps({"policies_dir": "/srv/policies", "environment": "prod", "unknown": 1}))

        # Act
        config = EngineConfig.load_from_file(path)

        # Assert
        assert config.policies_dir == "/srv/policies"
        assert config.environment == "prod"

    def test_missing_file(self, tmp_path):
        """Given a missing file, raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="not found"):
            EngineConfig.load_from_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        """Given malformed JSON, raises ConfigurationError."""
        path = tmp_path / "bad.json"
        path.write_text("{")

        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            EngineConfig.load_from_file(path)

    def test_invalid_values_are_listed(self, tmp_path):
        """Given an invalid value, the error names the field."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"load_timeout_seconds": 0, "logging": {"log_level": "LOUD"}}))

        with pytest.raises(ConfigurationError) as exc_info:
            EngineConfig.load_from_file(path)

        assert "load_timeout_seconds" in str(exc_info.value)
        assert "logging.log_level" in str(exc_info.value)

    def test_logging_paths(self, tmp_path):
        """Given a log_dir, audit and system paths live under it."""
        config = LoggingConfig(log_dir=str(tmp_path))

        assert config.audit_path == tmp_path / "audit" / "decisions.jsonl"
        assert config.system_path == tmp_path / "system.jsonl"
        assert LoggingConfig().audit_path is None


class TestResolveEnvironment:
    """Tests for resolve_environment()."""

    def test_configured_value_wins(self, clean_env):
        """Given a configured environment, it is used (lower-cased)."""
        clean_env.setenv("GRC_ENVIRONMENT", "staging")

        assert resolve_environment(EngineConfig(environment="PROD")) == "prod"

    def test_environment_variable(self, clean_env):
        """Given no configured value, GRC_ENVIRONMENT is used."""
        clean_env.setenv("GRC_ENVIRONMENT", "Staging")

        assert resolve_environment(EngineConfig()) == "staging"

    def test_default_is_dev(self, clean_env):
        """Given nothing configured, defaults to dev."""
        assert resolve_environment() == "dev"

    def test_blank_variable_falls_back(self, clean_env):
        """Given a blank GRC_ENVIRONMENT, defaults to dev."""
        clean_env.setenv("GRC_ENVIRONMENT", "  ")

        assert resolve_environment(None) == "dev"


class TestBuildEnforcer:
    """Tests for build_enforcer() wiring."""

    def test_defaults(self):
        """Given no config, the default policy is enforced."""
        enforcer = build_enforcer()

        assert isinstance(enforcer, PolicyEnforcer)
        assert enforcer.policy_name == "grc-baseline.yml"

    @pytest.mark.asyncio
    async def test_end_to_end_with_files(self, tmp_path, baseline_data, make_request):
        """Given a policies dir and log dir, enforce reads the file and writes the audit trail."""
        # Arrange
        policies = tmp_path / "policies"
        policies.mkdir()
        (policies / "grc-baseline.yml").write_text(yaml.safe_dump(baseline_data))
        log_dir = tmp_path / "logs"
        config = EngineConfig(policies_dir=str(policies), logging=LoggingConfig(log_dir=str(log_dir)))
        enforcer = build_enforcer(config)

        # Act
        decision = await enforcer.enforce(make_request({"metadata": {"labels": {"dataClassification": "public", "owner": "ab"}}}))
        with pytest.raises(PolicyViolation):
            await enforcer.enforce(make_request({}))
        for handler in logging.getLogger("grc-policy.audit.decisions").handlers:
            handler.flush()

        # Assert
        assert decision.effect == Effect.ALLOW
        lines = (log_dir / "audit" / "decisions.jsonl").read_text().splitlines()
        assert [json.loads(line)["effect"] for line in lines] == ["allow", "deny"]
        assert (log_dir / "system.jsonl").exists()
