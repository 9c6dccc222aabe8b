"""
Tuning-config lifecycle — persist, version and resolve the current config.

Public API:
  PipelineConfigManager(store, assigner=None)
    .get_effective_config()                             → TuningConfig
    .save_config(config)                                → TuningConfig
    .get_config_by_version(version)                     → Optional[TuningConfig]
    .get_effective_config_for_caller(caller_id, base)   → TuningConfig
    .get_config_version()                               → int
    .reset_config()                                     → TuningConfig

Collaborators (ABCs, so tests and the SQL layer can swap them):
  ConfigStore         get(key) / upsert(key, value) for one JSON record
  ExperimentAssigner  assign(caller_id, experiment_name) → "control" | "treatment"

Only the current config is stored; saving replaces it.  Consequently
get_config_by_version() can only find the current version, and A-B control
callers asking for version − 1 normally fall back to the neutral default.

save_config() is a plain upsert with no compare-and-swap: two concurrent
regenerate-then-save cycles race and the later write wins.

Store errors propagate to the caller; nothing here retries.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from adaptive_edge.core.tuning_config import (
    VARIANT_CONTROL,
    ConfigValidationError,
    TuningConfig,
    default_config,
    validate_version,
)

logger = logging.getLogger(__name__)

#: Key of the single stored config record.
PIPELINE_CONFIG_KEY = os.getenv("PIPELINE_CONFIG_KEY", "ats_pipeline_config")

__all__ = [
    "ConfigStore",
    "ConfigValidationError",
    "ExperimentAssigner",
    "InMemoryConfigStore",
    "PIPELINE_CONFIG_KEY",
    "PipelineConfigManager",
]


# ---------------------------------------------------------------------------
# Collaborator contracts
# ---------------------------------------------------------------------------

class ConfigStore(ABC):
    """Key-value persistence for JSON-safe config records."""

    @abstractmethod
    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the record stored under *key*, or ``None``."""

    @abstractmethod
    def upsert(self, key: str, value: Dict[str, Any]) -> None:
        """Create or replace the record under *key*."""


class ExperimentAssigner(ABC):
    """Sticky caller → variant assignment for one experiment."""

    @abstractmethod
    def assign(self, caller_id: str, experiment_name: str) -> str:
        """Return ``"control"`` or ``"treatment"``; the same caller always gets the same answer."""


class InMemoryConfigStore(ConfigStore):
    """Dict-backed store for tests and single-process use."""

    def __init__(self) -> None:
        self._records: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        return self._records.get(key)

    def upsert(self, key: str, value: Dict[str, Any]) -> None:
        self._records[key] = value


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------

class PipelineConfigManager:
    def __init__(
        self,
        store: ConfigStore,
        assigner: Optional[ExperimentAssigner] = None,
        key: str = PIPELINE_CONFIG_KEY,
    ):
        self.store = store
        self.assigner = assigner
        self.key = key

    def _load(self) -> Optional[TuningConfig]:
        record = self.store.get(self.key)
        if record is None:
            return None
        return TuningConfig.from_dict(record)

    def get_effective_config(self) -> TuningConfig:
        """The stored config merged over defaults, or the neutral default."""
        loaded = self._load()
        return loaded if loaded is not None else default_config()

    def save_config(self, config: TuningConfig) -> TuningConfig:
        """
        Make *config* the current record.

        Raises:
            ConfigValidationError: version is not a non-negative int.  The
                previously stored config is left untouched.
        """
        try:
            validate_version(config.version)
        except ConfigValidationError:
            logger.warning("Rejected tuning config with version %r", config.version)
            raise
        self.store.upsert(self.key, config.to_dict())
        logger.info(
            "Saved tuning config v%d (mode=%s)",
            config.version,
            config.validation_mode.value if config.validation_mode else "live",
        )
        return config

    def get_config_by_version(self, version: int) -> Optional[TuningConfig]:
        """Return the stored config only if it is exactly *version*."""
        current = self._load()
        if current is not None and current.version == version:
            return current
        return None

    def get_config_version(self) -> int:
        current = self._load()
        return current.version if current is not None else 0

    def get_effective_config_for_caller(
        self,
        caller_id: str,
        base_config: Optional[TuningConfig] = None,
    ) -> TuningConfig:
        """
        Resolve the config a specific caller should be served.

        Only an ``ab_test`` config with an experiment name consults the
        assigner.  Control callers get version − 1 if it can be found, else
        the neutral default.  Shadow and live configs are served as-is.
        """
        config = base_config if base_config is not None else self.get_effective_config()
        if not config.is_ab_test or self.assigner is None:
            return config

        variant = self.assigner.assign(caller_id, config.ab_test_name)
        if variant != VARIANT_CONTROL:
            return config

        prior = self.get_config_by_version(config.version - 1)
        if prior is None:
            logger.debug(
                "Control caller %s: v%d not stored, serving neutral default",
                caller_id, config.version - 1,
            )
            return default_config()
        return prior

    def reset_config(self) -> TuningConfig:
        """Persist a fresh neutral default."""
        logger.info("Resetting tuning config to neutral default")
        return self.save_config(default_config())
