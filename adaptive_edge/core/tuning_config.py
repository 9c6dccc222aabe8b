"""Versioned confidence-tuning configuration.

A :class:`TuningConfig` carries one ``{enabled, confidence_multiplier}``
setting per segment on every segmentation axis, plus per-sport confidence
floors, feature-weight overrides, the global constants that drive
regeneration, and optional rollout metadata (live / shadow / A-B).

Exactly one configuration is "current" at a time.  It is replaced, not
kept alongside its predecessors, whenever a new one is generated.

Invariants enforced on construction:

* every multiplier is clamped into ``[0, MAX_MULTIPLIER]``;
* a disabled setting always carries a multiplier of exactly ``0``.

Serialisation::

    cfg = default_config()
    data = cfg.to_dict()                 # JSON-safe dict
    assert TuningConfig.from_dict(data) == cfg

:meth:`TuningConfig.from_dict` merges the stored record over the neutral
default, so records written before a field existed still load.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Final, Mapping, Optional

from adaptive_edge.core.segments import ConfidenceBand, SpreadBucket, TotalBucket
from adaptive_edge.core.thresholds import KNOWN_SPORTS


#: Upper clamp for any confidence multiplier.
MAX_MULTIPLIER: Final[float] = 1.5

#: Version carried by the neutral default.
DEFAULT_CONFIG_VERSION: Final[int] = 1

VARIANT_CONTROL: Final[str] = "control"
VARIANT_TREATMENT: Final[str] = "treatment"


class ConfigValidationError(ValueError):
    """Raised when a tuning configuration has an invalid shape or version."""


class RolloutMode(str, Enum):
    LIVE = "live"
    SHADOW = "shadow"
    AB_TEST = "ab_test"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def validate_version(version: Any) -> int:
    """Return *version* if it is a non-negative ``int``; raise otherwise.

    ``bool`` is rejected even though it subclasses ``int``, as are floats
    with an integral value (``3.0``).
    """
    if isinstance(version, bool) or not isinstance(version, int):
        raise ConfigValidationError(
            f"Config version must be a non-negative integer, got "
            f"{type(version).__name__} ({version!r})"
        )
    if version < 0:
        raise ConfigValidationError(
            f"Config version must be a non-negative integer, got {version}"
        )
    return version


def _require_mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigValidationError(
            f"{where} must be a mapping, got {type(value).__name__} ({value!r})"
        )
    return value


def _require_bool(value: Any, where: str) -> bool:
    # "false" and 0 are rejected rather than coerced
    if not isinstance(value, bool):
        raise ConfigValidationError(
            f"{where} must be true or false, got {type(value).__name__} ({value!r})"
        )
    return value


def _require_float(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ConfigValidationError(
            f"{where} must be a finite number, got {type(value).__name__} ({value!r})"
        )
    return float(value)


def _require_int(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigValidationError(
            f"{where} must be a non-negative integer, got {type(value).__name__} ({value!r})"
        )
    return value


def _optional_str(value: Any, where: str) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise ConfigValidationError(f"{where} must be a string, got {type(value).__name__}")
    return value


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SegmentSetting:
    """Gate and multiplier for one segment."""

    enabled: bool = True
    confidence_multiplier: float = 1.0

    def __post_init__(self) -> None:
        mult = max(0.0, min(MAX_MULTIPLIER, float(self.confidence_multiplier)))
        if not self.enabled:
            mult = 0.0
        object.__setattr__(self, "confidence_multiplier", mult)

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "confidence_multiplier": self.confidence_multiplier,
        }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        base: "SegmentSetting",
        where: str = "setting",
    ) -> "SegmentSetting":
        """Overlay *data* on *base*.

        Raises:
            ConfigValidationError: If *data* is not a mapping or a field has
                the wrong type.
        """
        data = _require_mapping(data, where)
        return cls(
            enabled=_require_bool(data.get("enabled", base.enabled), f"{where}.enabled"),
            confidence_multiplier=_require_float(
                data.get("confidence_multiplier", base.confidence_multiplier),
                f"{where}.confidence_multiplier",
            ),
        )


@dataclass(frozen=True)
class SportSetting(SegmentSetting):
    """Segment setting plus a raw-confidence floor for the sport."""

    min_confidence_threshold: float = 0.0

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "min_confidence_threshold": self.min_confidence_threshold,
        }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        base: "SegmentSetting",
        where: str = "sport",
    ) -> "SportSetting":
        setting = SegmentSetting.from_dict(data, base, where)
        floor = data.get("min_confidence_threshold", getattr(base, "min_confidence_threshold", 0.0))
        return cls(
            enabled=setting.enabled,
            confidence_multiplier=setting.confidence_multiplier,
            min_confidence_threshold=_require_float(floor, f"{where}.min_confidence_threshold"),
        )


@dataclass(frozen=True)
class FeatureWeights:
    """Feature-correlation significance cut-off and per-feature multipliers."""

    significance_threshold: float = 0.1
    overrides: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "significance_threshold": self.significance_threshold,
            "overrides": dict(self.overrides),
        }


@dataclass(frozen=True)
class GlobalSettings:
    """Constants that drive config regeneration.

    Attributes:
        min_sample_size_for_adjustment: Decided games a segment needs before
            its settings may change.
        win_rate_threshold_for_disable: ATS win rate (%) below which a
            segment is switched off.
        win_rate_threshold_for_downweight: ATS win rate (%) below which a
            segment's multiplier is reduced.
        target_win_rate: Break-even ATS win rate at -110 (%).
    """

    min_sample_size_for_adjustment: int = 10
    win_rate_threshold_for_disable: float = 35.0
    win_rate_threshold_for_downweight: float = 45.0
    target_win_rate: float = 52.4

    def to_dict(self) -> dict:
        return {
            "min_sample_size_for_adjustment": self.min_sample_size_for_adjustment,
            "win_rate_threshold_for_disable": self.win_rate_threshold_for_disable,
            "win_rate_threshold_for_downweight": self.win_rate_threshold_for_downweight,
            "target_win_rate": self.target_win_rate,
        }


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TuningConfig:
    version: int
    updated_at: str
    sports: dict[str, SportSetting]
    spread_magnitude: dict[SpreadBucket, SegmentSetting]
    total_bucket: dict[TotalBucket, SegmentSetting]
    confidence_bands: dict[ConfidenceBand, SegmentSetting]
    feature_weights: FeatureWeights = field(default_factory=FeatureWeights)
    global_settings: GlobalSettings = field(default_factory=GlobalSettings)
    validation_mode: Optional[RolloutMode] = None
    ab_test_name: Optional[str] = None
    ab_test_variant: Optional[str] = None

    @property
    def is_ab_test(self) -> bool:
        return self.validation_mode is RolloutMode.AB_TEST and bool(self.ab_test_name)

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "updated_at": self.updated_at,
            "sports": {k: v.to_dict() for k, v in self.sports.items()},
            "spread_magnitude": {k.value: v.to_dict() for k, v in self.spread_magnitude.items()},
            "total_bucket": {k.value: v.to_dict() for k, v in self.total_bucket.items()},
            "confidence_bands": {k.value: v.to_dict() for k, v in self.confidence_bands.items()},
            "feature_weights": self.feature_weights.to_dict(),
            "global_settings": self.global_settings.to_dict(),
            "validation_mode": self.validation_mode.value if self.validation_mode else None,
            "ab_test_name": self.ab_test_name,
            "ab_test_variant": self.ab_test_variant,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TuningConfig":
        """Rebuild a config from :meth:`to_dict` output, filling gaps from defaults.

        Unknown segment keys are ignored.  Sports present in *data* but not in
        the default are kept.  Fields that are present must have the right
        type; nothing is coerced (``"false"`` is not a boolean).

        Raises:
            ConfigValidationError: If the record or any section has the wrong
                shape, ``version`` is invalid, or ``validation_mode`` is not a
                known rollout mode.
        """
        data = _require_mapping(data, "Config record")
        base = default_config()

        sports = dict(base.sports)
        for key, raw in _require_mapping(data.get("sports") or {}, "sports").items():
            sports[key] = SportSetting.from_dict(
                raw, sports.get(key, SportSetting()), f"sports.{key}"
            )

        fw_raw = _require_mapping(data.get("feature_weights") or {}, "feature_weights")
        overrides = _require_mapping(fw_raw.get("overrides") or {}, "feature_weights.overrides")
        feature_weights = FeatureWeights(
            significance_threshold=_require_float(
                fw_raw.get("significance_threshold", base.feature_weights.significance_threshold),
                "feature_weights.significance_threshold",
            ),
            overrides={
                k: _require_float(v, f"feature_weights.overrides.{k}")
                for k, v in overrides.items()
            },
        )

        gs_raw = _require_mapping(data.get("global_settings") or {}, "global_settings")
        gs = base.global_settings
        global_settings = GlobalSettings(
            min_sample_size_for_adjustment=_require_int(
                gs_raw.get("min_sample_size_for_adjustment", gs.min_sample_size_for_adjustment),
                "global_settings.min_sample_size_for_adjustment",
            ),
            **{
                name: _require_float(gs_raw.get(name, getattr(gs, name)), f"global_settings.{name}")
                for name in (
                    "win_rate_threshold_for_disable",
                    "win_rate_threshold_for_downweight",
                    "target_win_rate",
                )
            },
        )

        mode_raw = data.get("validation_mode")
        if mode_raw is not None and not isinstance(mode_raw, str):
            raise ConfigValidationError(f"Unknown validation_mode {mode_raw!r}")
        try:
            mode = RolloutMode(mode_raw) if mode_raw else None
        except ValueError:
            raise ConfigValidationError(f"Unknown validation_mode {mode_raw!r}") from None

        return cls(
            version=validate_version(data.get("version", base.version)),
            updated_at=str(data.get("updated_at") or base.updated_at),
            sports=sports,
            spread_magnitude=_merge_axis(SpreadBucket, data.get("spread_magnitude"), base.spread_magnitude, "spread_magnitude"),
            total_bucket=_merge_axis(TotalBucket, data.get("total_bucket"), base.total_bucket, "total_bucket"),
            confidence_bands=_merge_axis(ConfidenceBand, data.get("confidence_bands"), base.confidence_bands, "confidence_bands"),
            feature_weights=feature_weights,
            global_settings=global_settings,
            validation_mode=mode,
            ab_test_name=_optional_str(data.get("ab_test_name"), "ab_test_name"),
            ab_test_variant=_optional_str(data.get("ab_test_variant"), "ab_test_variant"),
        )


def _merge_axis(axis, raw: Any, base: Mapping, where: str) -> dict:
    merged = dict(base)
    for key, value in _require_mapping(raw or {}, where).items():
        member = axis.from_label(key)
        if member is None:
            continue
        merged[member] = SegmentSetting.from_dict(value, merged[member], f"{where}.{key}")
    return merged


def default_config(now: Optional[str] = None) -> TuningConfig:
    """The fully neutral configuration: everything enabled, every multiplier 1.0."""
    return TuningConfig(
        version=DEFAULT_CONFIG_VERSION,
        updated_at=now or utc_now_iso(),
        sports={sport: SportSetting() for sport in KNOWN_SPORTS},
        spread_magnitude={b: SegmentSetting() for b in SpreadBucket},
        total_bucket={b: SegmentSetting() for b in TotalBucket},
        confidence_bands={b: SegmentSetting() for b in ConfidenceBand},
    )


def increment_config_version(config: TuningConfig) -> TuningConfig:
    """Return a deep copy of *config* with ``version + 1`` and a fresh timestamp."""
    return replace(
        copy.deepcopy(config),
        version=config.version + 1,
        updated_at=utc_now_iso(),
    )
