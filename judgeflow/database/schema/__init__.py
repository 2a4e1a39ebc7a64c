"""SQLAlchemy schema for the judgeflow store."""

from .base import Base
from .catalog import Category, Contest, Contestant, Criterion, Event, Judge
from .certification import CategoryCertification, CertificationWorkflow, JudgeCertification
from .requests import JudgeUncertificationRequest, ScoreRemovalRequest
from .scoring import OverallDeduction, Score

__all__ = [
    "Base",
    "Category",
    "CategoryCertification",
    "CertificationWorkflow",
    "Contest",
    "Contestant",
    "Criterion",
    "Event",
    "Judge",
    "JudgeCertification",
    "JudgeUncertificationRequest",
    "OverallDeduction",
    "Score",
    "ScoreRemovalRequest",
]
