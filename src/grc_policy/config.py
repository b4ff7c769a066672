"""Engine configuration for grc-policy.

Defines configuration models for policy loading, environment resolution and
logging. Config is a JSON file owned by the host application.

Example usage:
    config = EngineConfig.load_from_file(Path("grc-policy.json"))
    enforcer = build_enforcer(config)
    decision = await enforcer.enforce(request)

Example config:
    {
        "policies_dir": "etc/policies",
        "default_policy": "grc-baseline.yml",
        "environment": "prod",
        "load_timeout_seconds": 5,
        "logging": {"log_dir": "/var/log/grc", "log_level": "INFO"}
    }
"""

from __future__ import annotations

__all__ = [
    "EngineConfig",
    "LoggingConfig",
    "build_enforcer",
    "resolve_environment",
]

import logging
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from grc_policy.constants import (
    DEFAULT_AUDIT_FILE,
    DEFAULT_ENVIRONMENT,
    DEFAULT_LOAD_TIMEOUT_SECONDS,
    DEFAULT_POLICIES_DIR,
    DEFAULT_POLICY_NAME,
    ENVIRONMENT_ENV_VAR,
)
from grc_policy.exceptions import ConfigurationError
from grc_policy.pdp.engine import PolicyEnforcer
from grc_policy.store import FilePolicySource, PolicyStore
from grc_policy.telemetry.audit.decision_logger import AuditLogger, create_decision_logger
from grc_policy.utils.file_helpers import load_validated_json, require_file_exists
from grc_policy.utils.logging.logger_setup import configure_logging

logger = logging.getLogger(__name__)


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration settings.

    Logs are stored under log_dir with this structure:
        <log_dir>/
        ├── system.jsonl            # Engine diagnostics (when log_dir is set)
        └── audit/                  # Always enabled (decision audit trail)
            └── decisions.jsonl

    Attributes:
        log_dir: Base directory for logs. None keeps diagnostics on stderr and
            leaves the audit logger to the host application's handlers.
        log_level: Level for engine diagnostics.
        audit_file: File name of the decision trail under <log_dir>/audit/.
    """

    log_dir: str | None = None
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    audit_file: str = Field(default=DEFAULT_AUDIT_FILE, min_length=1)

    model_config = ConfigDict(frozen=True)

    @property
    def audit_path(self) -> Path | None:
        """Path of the decision trail, if file logging is configured."""
        if self.log_dir is None:
            return None
        return Path(self.log_dir).expanduser() / "audit" / self.audit_file

    @property
    def system_path(self) -> Path | None:
        """Path of the diagnostics log, if file logging is configured."""
        if self.log_dir is None:
            return None
        return Path(self.log_dir).expanduser() / "system.jsonl"


# =============================================================================
# Engine Configuration
# =============================================================================


class EngineConfig(BaseModel):
    """Main configuration for the policy engine.

    Attributes:
        policies_dir: Directory holding policy documents.
        default_policy: Policy enforced by build_enforcer().
        environment: Deployment environment; falls back to GRC_ENVIRONMENT, then "dev".
        load_timeout_seconds: Time allowed for a policy load before it is
            treated as missing.
        logging: Logging configuration.
    """

    policies_dir: str = Field(default=DEFAULT_POLICIES_DIR, min_length=1)
    default_policy: str = Field(default=DEFAULT_POLICY_NAME, min_length=1)
    environment: str | None = None
    load_timeout_seconds: float = Field(default=DEFAULT_LOAD_TIMEOUT_SECONDS, gt=0)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(frozen=True, extra="ignore")

    @classmethod
    def load_from_file(cls, config_path: Path) -> EngineConfig:
        """Load configuration from JSON file.

        Args:
            config_path: Path to the config JSON file.

        Returns:
            EngineConfig instance with loaded configuration.

        Raises:
            ConfigurationError: If the file is missing or invalid.
        """
        try:
            require_file_exists(config_path, file_type="configuration")
            return load_validated_json(config_path, cls, file_type="config")
        except (FileNotFoundError, ValueError) as e:
            raise ConfigurationError(str(e)) from e


def resolve_environment(config: EngineConfig | None = None) -> str:
    """Resolve the deployment environment.

    Order: configured value, GRC_ENVIRONMENT, then "dev". Always lower-cased.

    Args:
        config: Engine configuration, if any.

    Returns:
        Environment name (e.g., "dev", "staging", "prod").
    """
    if config is not None and config.environment:
        return config.environment.strip().lower()
    from_env = os.environ.get(ENVIRONMENT_ENV_VAR, "").strip()
    return (from_env or DEFAULT_ENVIRONMENT).lower()


def build_enforcer(config: EngineConfig | None = None) -> PolicyEnforcer:
    """Wire a store, audit logger and enforcer from configuration.

    When logging.log_dir is set, diagnostics and the decision trail are
    written there as JSONL; otherwise the host application's logging setup
    is used unchanged.

    Args:
        config: Engine configuration; defaults are used when None.

    Returns:
        PolicyEnforcer for config.default_policy.
    """
    config = config or EngineConfig()

    audit_logger = AuditLogger()
    audit_path = config.logging.audit_path
    if audit_path is not None:
        configure_logging(config.logging.log_level, config.logging.system_path)
        audit_logger = AuditLogger(logger=create_decision_logger(audit_path))

    store = PolicyStore(FilePolicySource(config.policies_dir))
    logger.debug(
        "Built enforcer for policy %s from %s", config.default_policy, config.policies_dir
    )
    return PolicyEnforcer(
        store,
        audit_logger,
        config.default_policy,
        load_timeout=config.load_timeout_seconds,
    )
