"""YAML-driven analytics settings."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from analytics.deadline import Deadline
from analytics.models import DEFAULT_SEVERITY_THRESHOLDS

CONFIGS_DIR = Path(__file__).parent / "configs"
DEFAULT_CONFIG = CONFIGS_DIR / "default.yaml"
SETTINGS_ENV = "TIMELINE_SETTINGS"


@dataclass(frozen=True)
class RecommendationPolicy:
    """Thresholds that turn statistics into recommendations."""

    critical_gap_count: int = 1
    high_gap_count: int = 5
    total_gap_minutes: int = 1440
    influence_change_pct: float = 20.0
    concentration_factor: float = 2.0
    few_high_ratio: float = 0.1
    many_low_ratio: float = 0.5


@dataclass(frozen=True)
class AnalyticsSettings:
    severity_thresholds: Tuple[int, int, int] = DEFAULT_SEVERITY_THRESHOLDS
    decay_factor: float = 0.7
    influence_depth: int = 3
    network_depth: int = 2
    high_ratio: float = 0.7
    medium_ratio: float = 0.4
    top_n: int = 10
    max_workers: int = 4
    deadline_seconds: Optional[float] = None
    policy: RecommendationPolicy = field(default_factory=RecommendationPolicy)

    def __post_init__(self):
        medium, high, critical = self.severity_thresholds
        if not 0 <= medium < high < critical:
            raise ValueError(f"Severity thresholds must increase: {self.severity_thresholds}")
        if not 0 < self.decay_factor <= 1:
            raise ValueError(f"decay_factor must be in (0, 1], got {self.decay_factor}")
        if not 0 <= self.medium_ratio <= self.high_ratio <= 1:
            raise ValueError("Influence ratios must satisfy 0 <= medium <= high <= 1")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "AnalyticsSettings":
        severity = data.get("severity_thresholds") or {}
        influence = data.get("influence") or {}
        recommendations = data.get("recommendations") or {}
        execution = data.get("execution") or {}
        defaults = cls()

        thresholds = (
            int(severity.get("medium", defaults.severity_thresholds[0])),
            int(severity.get("high", defaults.severity_thresholds[1])),
            int(severity.get("critical", defaults.severity_thresholds[2])),
        )
        known_policy = RecommendationPolicy.__dataclass_fields__
        policy = RecommendationPolicy(
            **{k: v for k, v in recommendations.items() if k in known_policy}
        )
        deadline = execution.get("deadline_seconds")
        return cls(
            severity_thresholds=thresholds,
            decay_factor=float(influence.get("decay_factor", defaults.decay_factor)),
            influence_depth=int(influence.get("default_depth", defaults.influence_depth)),
            network_depth=int(influence.get("network_depth", defaults.network_depth)),
            high_ratio=float(influence.get("high_ratio", defaults.high_ratio)),
            medium_ratio=float(influence.get("medium_ratio", defaults.medium_ratio)),
            top_n=int(influence.get("top_n", defaults.top_n)),
            max_workers=int(execution.get("max_workers", defaults.max_workers)),
            deadline_seconds=float(deadline) if deadline is not None else None,
            policy=policy,
        )

    def new_deadline(self) -> Deadline:
        return Deadline(self.deadline_seconds)


def load_settings(path: Optional[Path] = None) -> AnalyticsSettings:
    """Load settings from ``path``, ``$TIMELINE_SETTINGS`` or the bundled defaults."""
    if path is None:
        env_path = os.environ.get(SETTINGS_ENV)
        path = Path(env_path) if env_path else DEFAULT_CONFIG
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    return AnalyticsSettings.from_mapping(data)
