"""Configurable scoring weights and tier thresholds."""

import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Any

from ..exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "LEAD_ENGINE_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".lead-engine" / "scoring_config.json"


@dataclass
class ScoringConfig:
    """Scoring weights and thresholds.

    The numbers are sales policy tuned by trial, not a fitted model, so every
    one of them can be overridden from the config file.
    """

    # Tier thresholds
    hot_threshold: int = 70
    warm_threshold: int = 40

    # Prior by lead source (proxy for buying intent)
    source_priors: Dict[str, int] = field(default_factory=lambda: {
        "contact_form": 45,  # Asked us a question directly
        "medical_request": 45,  # Specific dietary need
        "incomplete_checkout": 45,  # Almost purchased
        "individual_pack": 40,  # Already bought a trial pack
        "abandoned_plan": 35,  # Started a plan and stopped
        "early_access": 35,
        "event_signup": 30,  # Passive, met us at an event
        "manual": 25,
    })
    unknown_source_prior: int = 20

    # Recency: full points when just created, linear decay to zero at the cutoff
    recency_max_points: int = 20
    recency_cutoff_days: int = 60

    # Engagement from sales touches
    points_per_contact: int = 4
    engagement_cap: int = 12

    # Metadata signal weight overrides, keyed by signal name
    signal_weight_overrides: Dict[str, int] = field(default_factory=dict)

    # Purchase history
    points_per_purchase: int = 10
    spend_points_per_100: int = 1
    spend_points_cap: int = 15

    # Penalty once the last sales contact goes stale
    stale_contact_days: int = 30
    stale_contact_rate: float = 0.5  # points per day past stale_contact_days
    stale_contact_max_penalty: int = 20

    # Pipeline status adjustments
    status_adjustments: Dict[str, int] = field(default_factory=lambda: {
        "new": 0,
        "contacted": 5,
        "qualified": 15,
        "nurturing": 10,
        "converted": 0,
    })
    # spam/lost are capped here regardless of other signals
    dead_status_ceiling: int = 10

    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Raise ConfigError if thresholds or weights are inconsistent."""
        for name in ("hot_threshold", "warm_threshold", "dead_status_ceiling"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ConfigError(f"{name} must be between 0 and 100, got {value}")
        if self.warm_threshold > self.hot_threshold:
            raise ConfigError(
                f"warm_threshold ({self.warm_threshold}) cannot exceed "
                f"hot_threshold ({self.hot_threshold})"
            )
        if self.recency_cutoff_days <= 0:
            raise ConfigError("recency_cutoff_days must be positive")
        if self.source_priors and self.unknown_source_prior > min(self.source_priors.values()):
            raise ConfigError("unknown_source_prior cannot exceed any known source prior")

    def source_prior(self, source: str) -> int:
        """Prior for a source value, falling back to the unknown prior."""
        return self.source_priors.get(source, self.unknown_source_prior)

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            data[f.name] = value.isoformat() if isinstance(value, datetime) else value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoringConfig":
        """Build a config, merging partial dicts over the defaults."""
        defaults = cls()
        kwargs = {}
        for f in fields(cls):
            if f.name not in data or f.name == "updated_at":
                continue
            value = data[f.name]
            default = getattr(defaults, f.name)
            if isinstance(default, dict) and isinstance(value, dict):
                value = {**default, **value}
            kwargs[f.name] = value

        updated_at = data.get("updated_at")
        if updated_at:
            kwargs["updated_at"] = datetime.fromisoformat(updated_at)
        return cls(**kwargs)


def default_config_path() -> Path:
    """Config path from the environment, or the per-user default."""
    env_path = os.getenv(CONFIG_ENV_VAR)
    return Path(env_path) if env_path else DEFAULT_CONFIG_PATH


class ScoringConfigManager:
    """Load and persist scoring configuration."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager."""
        self.config_path = Path(config_path) if config_path else default_config_path()
        self.config = self._load_config()

    def _load_config(self) -> ScoringConfig:
        """Load configuration from file, falling back to defaults."""
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ConfigError(f"expected a JSON object, got {type(data).__name__}")
                return ScoringConfig.from_dict(data)
            except (OSError, ValueError, TypeError, AttributeError) as e:
                logger.error(f"Error loading scoring config from {self.config_path}: {e}")

        return ScoringConfig()

    def save_config(self):
        """Save configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w') as f:
            json.dump(self.config.to_dict(), f, indent=2)
        logger.info(f"Saved scoring config to {self.config_path}")

    def update_thresholds(self, hot: int, warm: int):
        """Update tier thresholds."""
        self.config = replace(
            self.config,
            hot_threshold=hot,
            warm_threshold=warm,
            updated_at=datetime.now(),
        )
        self.save_config()

    def set_source_prior(self, source: str, points: int):
        """Set the prior for a lead source."""
        priors = dict(self.config.source_priors)
        priors[source] = points
        self.config = replace(self.config, source_priors=priors, updated_at=datetime.now())
        self.save_config()

    def override_signal_weight(self, name: str, weight: int):
        """Override weight for a metadata signal."""
        self.config.signal_weight_overrides[name] = weight
        self.config.updated_at = datetime.now()
        self.save_config()
