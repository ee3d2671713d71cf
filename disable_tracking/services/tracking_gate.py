import enum
import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import DecodeError, StorageError
from .decision_cache import DecisionCache
from .site_id_decoder import SiteIdDecoder

logger = logging.getLogger(__name__)

POLICIES = ("allow", "block")


class GateDecision(enum.Enum):
    CONTINUE = "continue"
    TERMINATE = "terminate"


@dataclass(frozen=True)
class TrackingRequestContext:
    """What the gate needs to know about one inbound tracking request."""
    path: str
    site_token: Optional[str] = None
    client_ip: Optional[str] = None


class TrackingGate:
    """
    Per-request check run before a tracking event is processed.

    Requests for a disabled site are terminated. The check never raises:
    an undecodable identifier or an unreachable store is resolved by the
    configured policy ("allow" lets the request through, "block" drops it).
    """

    def __init__(
        self,
        cache: DecisionCache,
        decoder: SiteIdDecoder,
        on_storage_error: str = "allow",
        on_invalid_site_id: str = "allow",
    ):
        for policy in (on_storage_error, on_invalid_site_id):
            if policy not in POLICIES:
                raise ValueError(f"Unknown gate policy: {policy}")
        self.cache = cache
        self.decoder = decoder
        self.on_storage_error = on_storage_error
        self.on_invalid_site_id = on_invalid_site_id

    @staticmethod
    def _by_policy(policy: str) -> GateDecision:
        return GateDecision.TERMINATE if policy == "block" else GateDecision.CONTINUE

    def check(self, ctx: TrackingRequestContext) -> GateDecision:
        if ctx.site_token is None:
            return GateDecision.CONTINUE

        try:
            site_id = self.decoder.decode(ctx.site_token)
        except (DecodeError, ValueError) as e:
            logger.warning(f"⚠️ Malformed site identifier {ctx.site_token!r} from {ctx.client_ip}: {e} (policy: {self.on_invalid_site_id})")
            return self._by_policy(self.on_invalid_site_id)

        try:
            disabled = self.cache.get(site_id)
        except StorageError as e:
            logger.error(f"❌ Gate lookup failed for site {site_id}: {e.message} (policy: {self.on_storage_error})")
            return self._by_policy(self.on_storage_error)

        if disabled:
            logger.debug(f"Dropped tracking request for disabled site {site_id}")
            return GateDecision.TERMINATE
        return GateDecision.CONTINUE
