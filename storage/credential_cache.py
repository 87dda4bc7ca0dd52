"""
Credential Cache
Bearer credential cache with just-in-time refresh
"""
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional
import logging

from core import Credential
from utils.exceptions import CredentialError


logger = logging.getLogger(__name__)

FetchFn = Callable[[], Awaitable[Credential]]
ClockFn = Callable[[], datetime]

DEFAULT_SAFETY_MARGIN = 60.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExpiringCredentialCache:
    """
    Caches one credential and refreshes it when it is about to expire.

    A cached credential is served while more than ``safety_margin`` seconds
    of validity remain; otherwise ``fetch`` is awaited and its result replaces
    the cache.

    Concurrent callers that both observe an expiring credential will both
    refresh. Callers needing single-flight refresh must serialize ``get``
    themselves.
    """

    def __init__(
        self,
        fetch: FetchFn,
        safety_margin: float = DEFAULT_SAFETY_MARGIN,
        clock: Optional[ClockFn] = None,
        name: str = "credential",
    ):
        if safety_margin < 0:
            raise ValueError("safety_margin must be >= 0")
        self._fetch = fetch
        self.safety_margin = float(safety_margin)
        self._clock = clock or _utcnow
        self.name = name
        self._credential: Optional[Credential] = None
        self.refresh_count = 0

    def _is_usable(self, credential: Optional[Credential], now: datetime) -> bool:
        if credential is None:
            return False
        return credential.expires_at > now + timedelta(seconds=self.safety_margin)

    async def get(self) -> str:
        """Return a credential valid for at least the safety margin."""
        now = self._clock()
        if self._is_usable(self._credential, now):
            return self._credential.value

        logger.info("[%s] refreshing credential", self.name)
        credential = await self._fetch()
        self.refresh_count += 1

        if not self._is_usable(credential, self._clock()):
            raise CredentialError(
                f"[{self.name}] fetched credential expires within the safety margin",
                {"expires_at": credential.expires_at.isoformat()},
            )

        self._credential = credential
        return credential.value

    def peek(self) -> Optional[Credential]:
        """Cached credential without refreshing (may be stale)."""
        return self._credential

    def invalidate(self) -> None:
        """Drop the cached credential; the next ``get`` refetches."""
        self._credential = None


def credential_from_ttl(value: str, expires_in: float, now: Optional[datetime] = None) -> Credential:
    """Build a credential from a relative ``expires_in`` in seconds."""
    issued = now or _utcnow()
    return Credential(value=value, expires_at=issued + timedelta(seconds=float(expires_in)))
