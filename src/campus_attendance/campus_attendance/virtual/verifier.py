from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Mapping, Optional, Sequence
from urllib.parse import urlparse

from ..core import constants

TIME_WINDOW_CHECK = "time_window"
MEETING_LINK_CHECK = "meeting_link"

_IP_HEADERS = (
    "x-forwarded-for",
    "x-real-ip",
    "x-client-ip",
    "cf-connecting-ip",
    "x-forwarded",
    "forwarded-for",
    "forwarded",
)


@dataclass(frozen=True)
class StartVerification:
    verified: bool
    time_window_verified: bool
    meeting_link_verified: bool
    device_fingerprint: str
    errors: List[str] = field(default_factory=list)
    failed_checks: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DurationVerification:
    verified: bool
    overlap_minutes: float
    required_minutes: float
    skipped: bool = False
    error: Optional[str] = None


def device_fingerprint(user_agent: str, ip_address: str) -> str:
    """Stable short hash of the client; stored with the record, never checked."""

    combined = f"{user_agent or 'unknown'}|{ip_address or 'unknown'}"
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()[:16]


def client_ip_from_headers(headers: Mapping[str, str], remote_addr: Optional[str] = None) -> str:
    lowered = {str(k).lower(): v for k, v in headers.items()}
    for name in _IP_HEADERS:
        value = lowered.get(name)
        if value:
            # x-forwarded-for may carry a chain; the first hop is the client.
            return value.split(",")[0].strip()
    return remote_addr or "unknown"


class VirtualSessionVerifier:
    """Two-phase legitimacy checks for a virtual session.

    ``verify_start`` runs when the lecturer opens the session and
    ``verify_duration`` when it is closed. Both are pure.
    """

    def __init__(
        self,
        *,
        grace_before: timedelta = timedelta(minutes=constants.DEFAULT_VIRTUAL_GRACE_BEFORE_MINUTES),
        grace_after: timedelta = timedelta(minutes=constants.DEFAULT_VIRTUAL_GRACE_AFTER_MINUTES),
        min_duration_ratio: float = constants.DEFAULT_VIRTUAL_MIN_DURATION_RATIO,
        allowed_hosts: Sequence[str] = (),
    ):
        if not 0.0 < min_duration_ratio <= 1.0:
            raise ValueError("min_duration_ratio must be in (0, 1]")
        self._grace_before = grace_before
        self._grace_after = grace_after
        self._ratio = float(min_duration_ratio)
        self._allowed_hosts = tuple(h.lower() for h in allowed_hosts)

    def _check_link(self, meeting_link: Optional[str]) -> Optional[str]:
        link = (meeting_link or "").strip()
        if not link:
            return "No meeting link provided"

        try:
            parsed = urlparse(link)
        except ValueError:
            return "Invalid meeting link format"
        if parsed.scheme not in {"http", "https"} or not parsed.hostname:
            return "Invalid meeting link format"

        if self._allowed_hosts:
            host = parsed.hostname.lower()
            if not any(host == h or host.endswith("." + h) for h in self._allowed_hosts):
                return "Meeting link must be from a supported platform"
        return None

    def _check_window(self, scheduled_start: datetime, scheduled_end: datetime, now: datetime) -> Optional[str]:
        opens = scheduled_start - self._grace_before
        closes = scheduled_end + self._grace_after
        if opens <= now <= closes:
            return None
        return (
            "Current time is outside allowed window. Session can be started between "
            f"{opens:%H:%M} and {closes:%H:%M}"
        )

    def verify_start(
        self,
        meeting_link: Optional[str],
        scheduled_start: datetime,
        scheduled_end: datetime,
        now: datetime,
        user_agent: str,
        ip_address: str,
    ) -> StartVerification:
        errors: List[str] = []
        failed: List[str] = []

        window_error = self._check_window(scheduled_start, scheduled_end, now)
        if window_error:
            errors.append(window_error)
            failed.append(TIME_WINDOW_CHECK)

        link_error = self._check_link(meeting_link)
        if link_error:
            errors.append(link_error)
            failed.append(MEETING_LINK_CHECK)

        return StartVerification(
            verified=not failed,
            time_window_verified=window_error is None,
            meeting_link_verified=link_error is None,
            device_fingerprint=device_fingerprint(user_agent, ip_address),
            errors=errors,
            failed_checks=failed,
        )

    def verify_duration(
        self,
        session_start: Optional[datetime],
        session_end: datetime,
        scheduled_start: datetime,
        scheduled_end: datetime,
    ) -> DurationVerification:
        scheduled_minutes = (scheduled_end - scheduled_start).total_seconds() / 60
        required = scheduled_minutes * self._ratio

        if session_start is None:
            return DurationVerification(
                verified=False,
                overlap_minutes=0.0,
                required_minutes=required,
                skipped=True,
                error="Session start was never recorded",
            )
        if scheduled_minutes <= 0:
            return DurationVerification(
                verified=False,
                overlap_minutes=0.0,
                required_minutes=0.0,
                error="Scheduled session has no length",
            )

        overlap_start = max(session_start, scheduled_start)
        overlap_end = min(session_end, scheduled_end)
        overlap = max(0.0, (overlap_end - overlap_start).total_seconds() / 60)
        if session_end <= session_start:
            overlap = 0.0

        verified = overlap >= required
        return DurationVerification(
            verified=verified,
            overlap_minutes=overlap,
            required_minutes=required,
            error=None if verified else (
                f"Session overlap ({overlap:.0f} min) is less than required minimum ({required:.0f} min)"
            ),
        )
