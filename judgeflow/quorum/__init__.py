"""Co-signature quorum for score removal and judge uncertification."""

from .engine import SignatureQuorum
from .models import (
    ExecutionResult,
    QuorumRequest,
    RemovalResult,
    RequestKind,
    RequestStatus,
    SignatureSlot,
    SignResult,
    UncertificationResult,
)
from .removal import ScoreRemovalService
from .uncertification import JudgeUncertificationService

__all__ = [
    "ExecutionResult",
    "JudgeUncertificationService",
    "QuorumRequest",
    "RemovalResult",
    "RequestKind",
    "RequestStatus",
    "ScoreRemovalService",
    "SignResult",
    "SignatureQuorum",
    "SignatureSlot",
    "UncertificationResult",
]
