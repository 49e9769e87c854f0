from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from ..common.datetime_utils import now_local
from ..core import constants
from ..core.enums import AuditAction
from ..core.exceptions import AuditInconsistencyError, NotFoundError, ValidationError
from ..permissions.engine import PermissionEngine
from ..permissions.policy import Capability
from ..users.model import Actor
from .model import AuditLogEntry, AuditQuery, NewAuditLogEntry
from .repository import AuditRepository

logger = logging.getLogger(__name__)

DEFAULT_RISK_SCORE = 1

RISK_SCORES: Mapping[str, int] = MappingProxyType(
    {
        AuditAction.ATTENDANCE_RECORDED.value: 1,
        AuditAction.ATTENDANCE_SESSION_ENDED.value: 1,
        AuditAction.ATTENDANCE_VERIFIED.value: 3,
        AuditAction.ATTENDANCE_DISPUTED.value: 4,
        AuditAction.VERIFICATION_REQUEST_CREATED.value: 5,
        AuditAction.VERIFICATION_REQUEST_ESCALATED.value: 5,
        AuditAction.VERIFICATION_REQUEST_APPROVED.value: 3,
        AuditAction.VERIFICATION_REQUEST_REJECTED.value: 4,
        AuditAction.VERIFICATION_REQUEST_DISPUTED.value: 4,
        AuditAction.REPORT_GENERATED.value: 3,
        AuditAction.REPORT_EXPORTED.value: 3,
    }
)


def risk_score_for(action: Union[AuditAction, str]) -> int:
    key = action.value if isinstance(action, AuditAction) else str(action)
    score = RISK_SCORES.get(key, DEFAULT_RISK_SCORE)
    return max(constants.MIN_RISK_SCORE, min(constants.MAX_RISK_SCORE, score))


def risk_level(score: int) -> str:
    if score >= 8:
        return "High"
    if score >= 5:
        return "Medium"
    if score >= 2:
        return "Low"
    return "Minimal"


def _canonical(
    *,
    actor_id: int,
    actor_role: str,
    action: str,
    target_type: str,
    target_id: int,
    metadata: Dict[str, Any],
    risk_score: int,
    created_at: datetime,
) -> str:
    payload = {
        "actor_id": int(actor_id),
        "actor_role": actor_role,
        "action": action,
        "target_type": target_type,
        "target_id": int(target_id),
        "metadata": metadata,
        "risk_score": int(risk_score),
        "created_at": created_at.isoformat(),
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)


def compute_data_hash(**fields: Any) -> str:
    return hashlib.sha256(_canonical(**fields).encode("utf-8")).hexdigest()


class AuditTrail:
    """Append-only sink for transition events.

    Persistence errors propagate to the caller unchanged; the caller decides
    whether a failed audit write makes the transition inconsistent.
    """

    def __init__(
        self,
        repo: AuditRepository,
        *,
        permissions: Optional[PermissionEngine] = None,
    ):
        self._repo = repo
        self._permissions = permissions or PermissionEngine()

    def record(
        self,
        actor: Actor,
        action: Union[AuditAction, str],
        target_type: str,
        target_id: int,
        metadata: Optional[Dict[str, Any]] = None,
        *,
        now: Optional[datetime] = None,
    ) -> AuditLogEntry:
        action_name = action.value if isinstance(action, AuditAction) else str(action)
        # Round-trip so the stored form and the hashed form are identical.
        meta = json.loads(json.dumps(metadata or {}, sort_keys=True, default=str))
        created_at = now or now_local()
        score = risk_score_for(action_name)
        role = actor.role.value

        data_hash = compute_data_hash(
            actor_id=actor.user_id,
            actor_role=role,
            action=action_name,
            target_type=target_type,
            target_id=target_id,
            metadata=meta,
            risk_score=score,
            created_at=created_at,
        )
        new = NewAuditLogEntry(
            actor_id=actor.user_id,
            actor_role=role,
            action=action_name,
            target_type=target_type,
            target_id=int(target_id),
            metadata=meta,
            risk_score=score,
            data_hash=data_hash,
            created_at=created_at,
        )
        entry_id = self._repo.append(new)
        logger.debug("audit %s %s#%s by %s (risk %s)", action_name, target_type, target_id, actor.user_id, score)

        return AuditLogEntry(
            entry_id=entry_id,
            actor_id=new.actor_id,
            actor_role=new.actor_role,
            action=new.action,
            target_type=new.target_type,
            target_id=new.target_id,
            metadata=new.metadata,
            risk_score=new.risk_score,
            data_hash=new.data_hash,
            created_at=new.created_at,
        )

    @staticmethod
    def verify_integrity(entry: AuditLogEntry) -> bool:
        expected = compute_data_hash(
            actor_id=entry.actor_id,
            actor_role=entry.actor_role,
            action=entry.action,
            target_type=entry.target_type,
            target_id=entry.target_id,
            metadata=entry.metadata,
            risk_score=entry.risk_score,
            created_at=entry.created_at,
        )
        return expected == entry.data_hash

    @staticmethod
    def risk_level(score: int) -> str:
        return risk_level(score)

    def list_entries(
        self,
        actor: Actor,
        *,
        actor_id: Optional[int] = None,
        action: Optional[str] = None,
        target_type: Optional[str] = None,
        target_id: Optional[int] = None,
        min_risk: Optional[int] = None,
        limit: int = constants.DEFAULT_LIST_LIMIT,
    ) -> Sequence[AuditLogEntry]:
        self._permissions.require(actor.role, Capability.AUDIT_READ)
        if limit <= 0:
            raise ValidationError("limit must be positive")
        query = AuditQuery(
            actor_id=actor_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            min_risk=min_risk,
            limit=min(int(limit), constants.DEFAULT_LIST_LIMIT),
        )
        return self._repo.list(query)

    def check_entry(self, actor: Actor, entry_id: int) -> tuple[AuditLogEntry, bool]:
        """Load one entry and report whether its stored hash still matches."""

        self._permissions.require(actor.role, Capability.AUDIT_READ)
        entry = self._repo.get_by_id(entry_id)
        if not entry:
            raise NotFoundError("Audit entry not found")
        ok = self.verify_integrity(entry)
        if not ok:
            logger.warning("Audit entry %s failed integrity check", entry_id)
        return entry, ok


def audit_transition(
    audit: AuditTrail,
    actor: Actor,
    action: AuditAction,
    target_type: str,
    target_id: int,
    metadata: Optional[Dict[str, Any]] = None,
    *,
    now: Optional[datetime] = None,
) -> AuditLogEntry:
    """Write the audit entry for a transition that is already persisted."""

    try:
        return audit.record(actor, action, target_type, target_id, metadata, now=now)
    except Exception as e:
        logger.error(
            "Audit write failed after %s on %s#%s: %s",
            action.value,
            target_type,
            target_id,
            e,
        )
        raise AuditInconsistencyError(
            f"{target_type} #{target_id} was updated but its audit entry could not be written",
            target_type=target_type,
            target_id=int(target_id),
        ) from e
