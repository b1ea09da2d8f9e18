"""
Planning Services

Modules:
- exam_risk: Exam preparation risk scoring (pure)
- exam_prep_service: Subjects, revision sessions and preparation scores
"""

from studyplan.services.planning.exam_risk import (
    ExamRiskScore,
    ExamRiskScorer,
    RiskPolicy,
    SubjectTarget,
    classify_risk,
    sort_by_risk,
)

__all__ = [
    "ExamRiskScore",
    "ExamRiskScorer",
    "RiskPolicy",
    "SubjectTarget",
    "classify_risk",
    "sort_by_risk",
]
