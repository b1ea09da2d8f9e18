"""
Exam Preparation Risk Scoring

Pure scoring of how well a subject's revision is on track for its exam.

Inputs per subject:
- target study time (minutes)
- minutes already completed
- minutes planned in future sessions
- optional exam date

Outputs: progress percentage (capped at 120 to show over-achievement without
unbounded growth), remaining minutes, days until the exam and a risk level.

Risk classification (first match wins, order matters at the boundaries):
    1. exam within 7 days and more than 50% of the target unplanned → HIGH
    2. exam within 14 days and more than 30% unplanned → HIGH if progress < 40%,
       else MEDIUM
    3. progress >= 80% → LOW
    4. progress >= 40% → MEDIUM
    5. otherwise → HIGH

Usage:
    from studyplan.services.planning.exam_risk import ExamRiskScorer, SubjectTarget

    scorer = ExamRiskScorer()
    score = scorer.score(SubjectTarget(target_minutes=1200, completed_minutes=600), today)
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional, TypeVar

from studyplan.config import settings
from studyplan.enums.planning import DifficultyLevel, RiskLevel
from studyplan.services.learning.sm2 import round_half_up

T = TypeVar("T")


@dataclass(frozen=True)
class RiskPolicy:
    """
    Thresholds used by the risk classification.

    Empirical constants; tune through settings rather than code.
    """

    urgent_window_days: int = 7
    urgent_remaining_ratio: float = 0.5
    watch_window_days: int = 14
    watch_remaining_ratio: float = 0.3
    low_progress_ratio: float = 0.8
    medium_progress_ratio: float = 0.4
    progress_percentage_cap: int = 120

    @classmethod
    def from_settings(cls) -> "RiskPolicy":
        """Build the policy from the RISK_* settings."""
        return cls(
            urgent_window_days=settings.RISK_URGENT_WINDOW_DAYS,
            urgent_remaining_ratio=settings.RISK_URGENT_REMAINING_RATIO,
            watch_window_days=settings.RISK_WATCH_WINDOW_DAYS,
            watch_remaining_ratio=settings.RISK_WATCH_REMAINING_RATIO,
            low_progress_ratio=settings.RISK_LOW_PROGRESS_RATIO,
            medium_progress_ratio=settings.RISK_MEDIUM_PROGRESS_RATIO,
            progress_percentage_cap=settings.RISK_PROGRESS_PERCENTAGE_CAP,
        )


@dataclass
class SubjectTarget:
    """
    Study-time goal of one subject, assembled by the caller.

    completed_minutes and future_planned_minutes are sums over the subject's
    revision sessions; this module does not read sessions itself.
    """

    target_minutes: int
    completed_minutes: int = 0
    future_planned_minutes: int = 0
    exam_date: Optional[date] = None
    difficulty_level: Optional[DifficultyLevel] = None


@dataclass
class ExamRiskScore:
    """Score record for one subject. Recomputed on every view, never stored."""

    progress_percentage: int
    risk_level: RiskLevel
    remaining_minutes: int
    days_until_exam: Optional[int]
    progress_ratio: float
    remaining_ratio: float


def classify_risk(
    progress_ratio: float,
    days_until_exam: Optional[int],
    remaining_ratio: float,
    policy: RiskPolicy = RiskPolicy(),
) -> RiskLevel:
    """
    Classify exam preparation risk.

    Args:
        progress_ratio: completed / target minutes.
        days_until_exam: Days left, or None when no exam date is set.
        remaining_ratio: Unplanned remaining minutes / target minutes.
        policy: Threshold constants.

    Returns:
        RiskLevel of the first rule that matches.
    """
    # Exam proximity overrides the plain progress thresholds
    if days_until_exam is not None:
        if (
            days_until_exam <= policy.urgent_window_days
            and remaining_ratio > policy.urgent_remaining_ratio
        ):
            return RiskLevel.HIGH
        if (
            days_until_exam <= policy.watch_window_days
            and remaining_ratio > policy.watch_remaining_ratio
        ):
            if progress_ratio < policy.medium_progress_ratio:
                return RiskLevel.HIGH
            return RiskLevel.MEDIUM

    if progress_ratio >= policy.low_progress_ratio:
        return RiskLevel.LOW
    if progress_ratio >= policy.medium_progress_ratio:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


class ExamRiskScorer:
    """
    Exam preparation scorer.

    Stateless apart from its policy; a total function over well-formed input.
    """

    def __init__(self, policy: Optional[RiskPolicy] = None):
        """
        Initialize the scorer.

        Args:
            policy: Threshold constants (defaults to RiskPolicy.from_settings())
        """
        self.policy = policy or RiskPolicy.from_settings()

    def score(self, target: SubjectTarget, today: date) -> ExamRiskScore:
        """
        Score one subject.

        Args:
            target: The subject's target and summed session minutes.
            today: Reference date for the exam countdown.

        Returns:
            ExamRiskScore with percentage, remaining minutes, countdown and risk.

        Raises:
            ValueError: If any minute field is negative.
        """
        _check_non_negative(target)

        target_minutes = target.target_minutes
        progress_ratio = (
            target.completed_minutes / target_minutes if target_minutes > 0 else 0.0
        )
        progress_percentage = min(
            int(round_half_up(progress_ratio * 100)),
            self.policy.progress_percentage_cap,
        )

        remaining_minutes = max(
            0, target_minutes - target.completed_minutes - target.future_planned_minutes
        )
        remaining_ratio = (
            remaining_minutes / target_minutes if target_minutes > 0 else 0.0
        )

        days_until_exam = (
            (target.exam_date - today).days if target.exam_date is not None else None
        )

        risk_level = classify_risk(
            progress_ratio, days_until_exam, remaining_ratio, self.policy
        )

        return ExamRiskScore(
            progress_percentage=progress_percentage,
            risk_level=risk_level,
            remaining_minutes=remaining_minutes,
            days_until_exam=days_until_exam,
            progress_ratio=progress_ratio,
            remaining_ratio=remaining_ratio,
        )


def _check_non_negative(target: SubjectTarget) -> None:
    for name in ("target_minutes", "completed_minutes", "future_planned_minutes"):
        value = getattr(target, name)
        if value < 0:
            raise ValueError(f"{name} must be >= 0, got {value}")


def risk_sort_key(
    risk_level: RiskLevel, days_until_exam: Optional[int]
) -> tuple[int, int, int]:
    """
    Sort key for displaying scored subjects.

    High risk first, then nearest exam; subjects without an exam date go
    after every dated subject of the same tier.
    """
    has_no_exam = days_until_exam is None
    return (RiskLevel(risk_level).sort_rank, int(has_no_exam), days_until_exam or 0)


def sort_by_risk(
    items: Iterable[T],
    key: Callable[[T], tuple[RiskLevel, Optional[int]]] = lambda s: (
        s.risk_level,
        s.days_until_exam,
    ),
) -> list[T]:
    """
    Order scored subjects for display.

    Args:
        items: Score records (anything exposing risk_level and days_until_exam,
            or use ``key`` to extract them).
        key: Returns (risk_level, days_until_exam) for an item.

    Returns:
        New list; full ties keep their input order.
    """
    return sorted(items, key=lambda item: risk_sort_key(*key(item)))
