"""Category certification: the per-role ledger and the workflow orchestrator.

Certification is write-once per (category, role). Progress needs JUDGE,
TALLY_MASTER, AUDITOR and BOARD before a category counts as fully certified.
"""

from .ledger import CertificationLedger, derive_state
from .models import (
    CertificationProgress,
    CertificationRecord,
    JudgeCertificationRecord,
    RoleCertificationStatus,
    SignatureStatus,
    SignWinnersResult,
    WorkflowRecord,
    WorkflowState,
    WorkflowStatus,
)
from .signer import generate_signature
from .workflow import CertificationWorkflow

__all__ = [
    "CertificationLedger",
    "CertificationProgress",
    "CertificationRecord",
    "CertificationWorkflow",
    "JudgeCertificationRecord",
    "RoleCertificationStatus",
    "SignWinnersResult",
    "SignatureStatus",
    "WorkflowRecord",
    "WorkflowState",
    "WorkflowStatus",
    "derive_state",
    "generate_signature",
]
