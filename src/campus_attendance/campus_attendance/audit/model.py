from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class AuditLogEntry:
    """Append-only record of one state transition."""

    entry_id: int
    actor_id: int
    actor_role: str
    action: str
    target_type: str
    target_id: int
    risk_score: int
    data_hash: str
    created_at: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "entry_id": self.entry_id,
            "actor_id": self.actor_id,
            "actor_role": self.actor_role,
            "action": self.action,
            "target_type": self.target_type,
            "target_id": self.target_id,
            "metadata": self.metadata,
            "risk_score": self.risk_score,
            "data_hash": self.data_hash,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class NewAuditLogEntry:
    actor_id: int
    actor_role: str
    action: str
    target_type: str
    target_id: int
    risk_score: int
    data_hash: str
    created_at: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AuditQuery:
    actor_id: Optional[int] = None
    action: Optional[str] = None
    target_type: Optional[str] = None
    target_id: Optional[int] = None
    min_risk: Optional[int] = None
    limit: int = 200
