"""RefreshCoordinator: Partial-failure-tolerant refresh of all token rates.

A refresh pass walks the configured tokens in their current order, resolves
each one and commits every successful rate on its own as a single write, without
a ledger snapshot. A token whose sources fail keeps its previous rate and never
blocks the others.

The global update timestamp only advances when at least one rate was written,
so a pass where every source fails leaves prices stale and another attempt is
made on the next cycle.

Manual overrides bypass resolution and write rates directly.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Sequence

from .AccessControl import AuthContext, Role, RoleRegistry
from .ConfigRegistry import ConfigRegistry
from .errors import ConfigurationError, LengthMismatch, ResolutionFailure
from .Ledger import Ledger
from .PriceResolver import PriceResolver
from .RateStore import RateStore
from .TokenConfig import normalize_address

logger = logging.getLogger(__name__)


@dataclass
class RefreshResult:
    """Summary of one refresh pass.

    :ivar updated: Tokens whose rate was written, in processing order.
    :ivar failures: Per-token resolution failures.
    :ivar timestamp: Unix timestamp at the end of the pass.
    """

    updated: list[str] = field(default_factory=list)
    failures: list[ResolutionFailure] = field(default_factory=list)
    timestamp: int = 0

    @property
    def updated_any(self) -> bool:
        return len(self.updated) > 0


class RefreshCoordinator:
    """Drives refresh passes and manual rate overrides.

    :ivar last_result: Summary of the most recent refresh pass.
    """

    def __init__(
        self,
        ledger: Ledger,
        roles: RoleRegistry,
        registry: ConfigRegistry,
        rate_store: RateStore,
        resolver: PriceResolver,
    ) -> None:
        self.ledger = ledger
        self.roles = roles
        self.registry = registry
        self.rate_store = rate_store
        self.resolver = resolver
        self.last_result: RefreshResult | None = None

    def refresh_all(self) -> bool:
        """Attempt to refresh every configured token.

        :returns: True if at least one rate was updated.
        """
        result = RefreshResult()

        for token in self.registry.tokens():
            resolution = self.resolver.resolve_detailed(token)
            if not resolution.ok:
                failure = ResolutionFailure(token, "; ".join(resolution.errors or []))
                result.failures.append(failure)
                logger.warning(f"[{token}] Keeping previous rate: {failure.reason}")
                continue

            # Single write, committed on its own
            self.rate_store.set_rate(token, resolution.price)
            result.updated.append(token)
            logger.debug(f"[{token}] {resolution.price} via {resolution.source}")

        result.timestamp = int(time.time())
        if result.updated_any:
            self.rate_store.mark_updated(result.timestamp)

        logger.info(
            f"Refresh pass: {len(result.updated)} updated, "
            f"{len(result.failures)} failed"
            + ("" if result.updated_any else " (global timestamp unchanged)")
        )
        self.last_result = result
        return result.updated_any

    def update_rate(self, ctx: AuthContext, token: str, rate: int) -> None:
        """Manually set one token's rate. Requires RATE_UPDATER.

        :param ctx: Authorization context of the call.
        :param token: Configured token address.
        :param rate: 18-decimal rate.
        :raises RoleError: If the caller is not a rate updater.
        :raises ConfigurationError: If the token is not configured.
        :raises ValueError: If the rate is not positive.
        """
        self.batch_update_rates(ctx, [token], [rate])

    def batch_update_rates(
        self, ctx: AuthContext, tokens: Sequence[str], rates: Sequence[int]
    ) -> None:
        """Manually set several rates at once. Requires RATE_UPDATER.

        Either every rate is written or none is.

        :param ctx: Authorization context of the call.
        :param tokens: Configured token addresses.
        :param rates: 18-decimal rates, one per token.
        :raises RoleError: If the caller is not a rate updater.
        :raises LengthMismatch: If tokens and rates differ in length.
        :raises ConfigurationError: If a token is not configured.
        :raises ValueError: If a rate is not positive.
        """
        self.roles.require(ctx, Role.RATE_UPDATER)
        if len(tokens) != len(rates):
            raise LengthMismatch(len(tokens), len(rates))

        with self.ledger.transaction():
            for token, rate in zip(tokens, rates, strict=True):
                token = normalize_address(token, "token")
                if not self.registry.is_configured(token):
                    raise ConfigurationError(f"Token {token} is not configured")
                if rate <= 0:
                    raise ValueError(f"Rate for {token} must be positive, got {rate}")
                self.rate_store.set_rate(token, rate)

        logger.info(f"Manual override of {len(tokens)} rate(s) by {ctx.caller}")
