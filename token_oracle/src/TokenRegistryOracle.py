"""TokenRegistryOracle: Ledger-facing facade of the token rate oracle.

Wires the role registry, config registry, rate store, resolver and refresh
coordinator around one :class:`Ledger`, and exposes the oracle's public
operations. Every mutating operation takes an explicit
:class:`AuthContext` and commits atomically.
"""

from __future__ import annotations

import logging
from typing import Sequence

from .AccessControl import AuthContext, Role, RoleRegistry
from .ConfigRegistry import ConfigRegistry
from .errors import ResolutionFailure
from .Ledger import Ledger
from .PriceResolver import PriceResolver
from .RateStore import DEFAULT_PRICE_UPDATE_INTERVAL, RateStore
from .RefreshCoordinator import RefreshCoordinator, RefreshResult
from .SourceReader import SourceReader
from .TokenConfig import TokenConfig

logger = logging.getLogger(__name__)


class TokenRegistryOracle:
    """Token rate oracle with primary/fallback sources and global staleness.

    :ivar roles: Role registry.
    :ivar registry: Configured tokens.
    :ivar rate_store: Stored rates and global freshness state.
    :ivar resolver: Per-token price resolver.
    :ivar coordinator: Refresh and manual override driver.
    :ivar ledger: Transactional boundary around all of the above.
    """

    def __init__(
        self,
        admin: str,
        reader: SourceReader,
        price_update_interval: int = DEFAULT_PRICE_UPDATE_INTERVAL,
    ) -> None:
        """Initialize the oracle.

        :param admin: Address granted the ADMIN role.
        :param reader: Reader used to query price sources.
        :param price_update_interval: Initial refresh cadence in seconds.
        """
        self.roles = RoleRegistry(admin)
        self.rate_store = RateStore(self.roles, price_update_interval)
        self.registry = ConfigRegistry(self.roles, self.rate_store)
        self.ledger = Ledger(self.roles, self.rate_store, self.registry)
        self.resolver = PriceResolver(self.registry, reader)
        self.coordinator = RefreshCoordinator(
            self.ledger, self.roles, self.registry, self.rate_store, self.resolver
        )

    # Role management

    def grant_role(self, ctx: AuthContext, role: Role, account: str) -> None:
        with self.ledger.transaction():
            self.roles.grant_role(ctx, role, account)

    def revoke_role(self, ctx: AuthContext, role: Role, account: str) -> None:
        with self.ledger.transaction():
            self.roles.revoke_role(ctx, role, account)

    def has_role(self, role: Role, account: str) -> bool:
        return self.roles.has_role(role, account)

    # Configuration

    def configure_token(
        self,
        ctx: AuthContext,
        token: str,
        primary_type: int,
        primary_source: str,
        needs_arg: bool,
        fallback_source: str,
        fallback_selector: bytes | str,
    ) -> TokenConfig:
        """Create or overwrite a token's source wiring. Requires CONFIGURATOR."""
        with self.ledger.transaction():
            return self.registry.configure_token(
                ctx,
                token,
                primary_type,
                primary_source,
                needs_arg,
                fallback_source,
                fallback_selector,
            )

    def remove_token(self, ctx: AuthContext, token: str) -> None:
        """Remove a token and its rate. Requires CONFIGURATOR."""
        with self.ledger.transaction():
            self.registry.remove_token(ctx, token)

    def is_configured(self, token: str) -> bool:
        return self.registry.is_configured(token)

    def configured_tokens(self) -> list[str]:
        return self.registry.tokens()

    # Rates

    def get_rate(self, token: str) -> int:
        """Get a token's stored rate, or 0 if unset.

        A zero rate is ambiguous; check :meth:`is_configured` when it matters.
        """
        config = self.registry.get_config(token)
        return self.rate_store.get_rate(config.token) if config else 0

    def get_token_price(self, token: str) -> int:
        """Resolve a token's current price from its sources without storing it.

        :param token: Token address.
        :returns: 18-decimal price.
        :raises ResolutionFailure: If both primary and fallback fail.
        """
        resolution = self.resolver.resolve_detailed(token)
        if not resolution.ok:
            raise ResolutionFailure(token, "; ".join(resolution.errors or []))
        return resolution.price

    def update_rate(self, ctx: AuthContext, token: str, rate: int) -> None:
        """Manually set a rate. Requires RATE_UPDATER."""
        self.coordinator.update_rate(ctx, token, rate)

    def batch_update_rates(
        self, ctx: AuthContext, tokens: Sequence[str], rates: Sequence[int]
    ) -> None:
        """Manually set several rates atomically. Requires RATE_UPDATER."""
        self.coordinator.batch_update_rates(ctx, tokens, rates)

    # Freshness

    def price_update_interval(self) -> int:
        return self.rate_store.price_update_interval

    def set_price_update_interval(self, ctx: AuthContext, interval: int) -> None:
        """Change the refresh cadence. Requires ADMIN."""
        with self.ledger.transaction():
            self.rate_store.set_price_update_interval(ctx, interval)

    def are_prices_stale(self) -> bool:
        return self.rate_store.are_prices_stale()

    def last_price_update(self) -> int:
        return self.rate_store.last_price_update()

    def refresh_all(self) -> bool:
        """Run a refresh pass unconditionally.

        :returns: True if at least one rate was updated.
        """
        return self.coordinator.refresh_all()

    def update_all_prices_if_needed(self) -> bool:
        """Refresh all prices if they are stale. Callable by anyone.

        :returns: True if a refresh pass updated at least one rate.
        """
        if not self.rate_store.are_prices_stale():
            logger.debug("Prices are fresh, skipping refresh")
            return False
        return self.coordinator.refresh_all()

    @property
    def last_refresh(self) -> RefreshResult | None:
        return self.coordinator.last_result
