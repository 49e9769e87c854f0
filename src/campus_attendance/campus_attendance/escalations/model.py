from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple

from ..core.enums import RequestStatus


@dataclass(frozen=True)
class VerificationRequest:
    """Secondary review raised against an attendance record."""

    request_id: int
    record_id: int
    requester_id: int
    status: RequestStatus
    created_at: datetime
    notes: Optional[str] = None
    evidence: Tuple[str, ...] = ()
    review_notes: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    escalated_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        if self.status == RequestStatus.PENDING:
            return True
        return self.status == RequestStatus.DISPUTED and self.escalated_at is not None

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "record_id": self.record_id,
            "requester_id": self.requester_id,
            "status": self.status.value,
            "notes": self.notes,
            "evidence": list(self.evidence),
            "review_notes": self.review_notes,
            "reviewed_by": self.reviewed_by,
            "created_at": self.created_at.isoformat(),
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "escalated_at": self.escalated_at.isoformat() if self.escalated_at else None,
        }


@dataclass(frozen=True)
class NewVerificationRequest:
    record_id: int
    requester_id: int
    created_at: datetime
    notes: Optional[str] = None
    evidence: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RequestResolution:
    request_id: int
    status: RequestStatus
    review_notes: Optional[str]
    reviewed_by: int
    reviewed_at: datetime
    escalated_at: Optional[datetime] = None


OPEN_ACTION = "open"
RESOLVE_ACTION = "resolve"


@dataclass(frozen=True)
class EscalationPayload:
    """Inbound command for ``EscalationService.open_or_resolve``."""

    action: str
    record_id: Optional[int] = None
    request_id: Optional[int] = None
    notes: Optional[str] = None
    evidence: Tuple[str, ...] = field(default_factory=tuple)
    status: Optional[str] = None
    review_notes: Optional[str] = None
    escalate: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EscalationPayload":
        evidence = data.get("evidence") or ()
        if isinstance(evidence, str):
            evidence = (evidence,)
        return cls(
            action=str(data.get("action") or "").strip().lower(),
            record_id=data.get("record_id"),
            request_id=data.get("request_id"),
            notes=data.get("notes"),
            evidence=tuple(str(e) for e in evidence),
            status=data.get("status"),
            review_notes=data.get("review_notes"),
            escalate=bool(data.get("escalate", False)),
        )
