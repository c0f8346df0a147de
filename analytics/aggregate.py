"""Summary statistics and recommendations over gap and influence results."""
from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from analytics.config import RecommendationPolicy
from analytics.gaps import Gap
from analytics.models import Event, Severity


@dataclass
class Recommendation:
    type: str
    message: str
    priority: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class GapStatistics:
    total_gaps: int
    total_gap_minutes: int
    average_gap_minutes: float
    max_gap_minutes: int
    min_gap_minutes: int
    severity_breakdown: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class InfluencePattern:
    max_influence: float
    min_influence: float
    average_influence: float
    influence_range: float
    influence_variance: float
    distribution: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def severity_breakdown(gaps: Sequence[Gap]) -> Dict[str, int]:
    counts = Counter(g.severity for g in gaps)
    return {severity.value: counts.get(severity, 0) for severity in reversed(list(Severity))}


def gap_statistics(gaps: Sequence[Gap]) -> GapStatistics:
    durations = pd.Series([g.duration_minutes for g in gaps], dtype="int64")
    if durations.empty:
        return GapStatistics(0, 0, 0.0, 0, 0, severity_breakdown(gaps))
    return GapStatistics(
        total_gaps=int(durations.count()),
        total_gap_minutes=int(durations.sum()),
        average_gap_minutes=float(durations.mean()),
        max_gap_minutes=int(durations.max()),
        min_gap_minutes=int(durations.min()),
        severity_breakdown=severity_breakdown(gaps),
    )


def events_with_most_gaps(gaps: Sequence[Gap], top_n: int = 10) -> List[Tuple[Event, int]]:
    """Events bordering the most gaps; ties keep first-seen order."""
    counts: Dict[str, int] = {}
    events: Dict[str, Event] = {}
    for gap in gaps:
        for event in (gap.preceding, gap.succeeding):
            counts[event.id] = counts.get(event.id, 0) + 1
            events[event.id] = event
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:top_n]
    return [(events[event_id], count) for event_id, count in ranked]


def gap_recommendations(gaps: Sequence[Gap], policy: RecommendationPolicy) -> List[Recommendation]:
    recommendations: List[Recommendation] = []
    breakdown = severity_breakdown(gaps)

    critical = breakdown[Severity.CRITICAL.value]
    if critical >= policy.critical_gap_count:
        recommendations.append(Recommendation(
            type="critical",
            message=f"Found {critical} critical gaps (>8 hours). Consider rescheduling events to reduce downtime.",
            priority="high",
        ))

    high = breakdown[Severity.HIGH.value]
    if high > policy.high_gap_count:
        recommendations.append(Recommendation(
            type="efficiency",
            message=f"Found {high} high-priority gaps (2-8 hours). Consider adding buffer activities or parallel processing.",
            priority="medium",
        ))

    total_minutes = sum(g.duration_minutes for g in gaps)
    if total_minutes > policy.total_gap_minutes:
        recommendations.append(Recommendation(
            type="optimization",
            message=f"Total gap time is {round(total_minutes / 60)} hours. Consider optimizing event scheduling.",
            priority="medium",
        ))
    return recommendations


def population_variance(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return float(pd.Series(values, dtype="float64").var(ddof=0))


def influence_distribution(
    values: Sequence[float],
    high_ratio: float = 0.7,
    medium_ratio: float = 0.4,
) -> Dict[str, int]:
    """Bucket values relative to the largest one observed."""
    distribution = {"high": 0, "medium": 0, "low": 0}
    if not values:
        return distribution
    peak = max(values)
    for value in values:
        if value >= peak * high_ratio:
            distribution["high"] += 1
        elif value >= peak * medium_ratio:
            distribution["medium"] += 1
        else:
            distribution["low"] += 1
    return distribution


def influence_pattern(
    scores: Sequence[float],
    high_ratio: float = 0.7,
    medium_ratio: float = 0.4,
) -> InfluencePattern:
    if not scores:
        return InfluencePattern(0.0, 0.0, 0.0, 0.0, 0.0, influence_distribution(scores))
    series = pd.Series(scores, dtype="float64")
    peak, floor = float(series.max()), float(series.min())
    return InfluencePattern(
        max_influence=peak,
        min_influence=floor,
        average_influence=float(series.mean()),
        influence_range=peak - floor,
        influence_variance=population_variance(scores),
        distribution=influence_distribution(scores, high_ratio, medium_ratio),
    )


def influence_recommendations(pattern: InfluencePattern, policy: RecommendationPolicy) -> List[Recommendation]:
    recommendations: List[Recommendation] = []
    if pattern.max_influence > pattern.average_influence * policy.concentration_factor:
        recommendations.append(Recommendation(
            type="optimization",
            message="High influence concentration detected. Consider distributing influence across more events.",
            priority="medium",
        ))
    distribution = pattern.distribution
    if distribution["low"] > distribution["high"] + distribution["medium"]:
        recommendations.append(Recommendation(
            type="efficiency",
            message="Many events have low influence. Consider consolidating or removing low-impact events.",
            priority="low",
        ))
    return recommendations


def global_influence_recommendations(
    distribution: Dict[str, int],
    total_events: int,
    policy: RecommendationPolicy,
) -> List[Recommendation]:
    recommendations: List[Recommendation] = []
    if distribution["high"] < total_events * policy.few_high_ratio:
        recommendations.append(Recommendation(
            type="strategy",
            message="Few high-influence events detected. Consider identifying and strengthening key events.",
            priority="high",
        ))
    if distribution["low"] > total_events * policy.many_low_ratio:
        recommendations.append(Recommendation(
            type="optimization",
            message="Many low-influence events detected. Consider event consolidation or removal.",
            priority="medium",
        ))
    return recommendations


def percentage_change(baseline: float, new: float) -> Optional[float]:
    """Relative change in percent; None when the baseline is zero."""
    if baseline == 0:
        return None
    return (new - baseline) / baseline * 100


def simulation_recommendations(
    original_total: float,
    new_total: float,
    policy: RecommendationPolicy,
) -> List[Recommendation]:
    change = percentage_change(original_total, new_total)
    if change is None:
        return []
    if change > policy.influence_change_pct:
        return [Recommendation(
            type="impact",
            message=f"Significant positive influence increase ({change:.1f}%). This change has strong positive impact.",
            priority="high",
        )]
    if change < -policy.influence_change_pct:
        return [Recommendation(
            type="warning",
            message=f"Significant negative influence decrease ({change:.1f}%). Consider alternative approaches.",
            priority="high",
        )]
    return []
