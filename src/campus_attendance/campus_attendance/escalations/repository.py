from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..attendance.model import VerificationState
from ..core.enums import RequestStatus
from .model import NewVerificationRequest, RequestResolution, VerificationRequest


class VerificationRequestRepository(Protocol):
    def get_by_id(self, request_id: int) -> Optional[VerificationRequest]:
        raise NotImplementedError

    def find_open_for_record(self, record_id: int) -> Optional[VerificationRequest]:
        raise NotImplementedError

    def create_if_none_open(self, request: NewVerificationRequest) -> Optional[int]:
        """Insert unless the record already has an open request.

        Returns the new request_id, or None when one is open.
        """

        raise NotImplementedError

    def resolve_if_pending(
        self,
        resolution: RequestResolution,
        *,
        supervisor_state: Optional[VerificationState] = None,
    ) -> bool:
        """Decide a pending request and, when given, write the record's supervisor outcome.

        Both writes succeed or neither does. Returns False when the request was no longer pending.
        """

        raise NotImplementedError

    def list_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        requester_id: Optional[int] = None,
        record_lecturer_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[VerificationRequest]:
        """Newest first. ``record_lecturer_id`` filters on the record's lecturer."""

        raise NotImplementedError
