"""RateStore: Current token rates and global freshness state.

Rates are unsigned 18-decimal fixed-point values. Freshness is tracked
globally: a single timestamp records the last refresh pass that made progress.

Prices are stale once the last update is older than the configurable
``price_update_interval`` or, regardless of that interval, older than the fixed
``STALENESS_PERIOD`` ceiling.
"""

from __future__ import annotations

import logging
import time

from .AccessControl import AuthContext, Role, RoleRegistry

logger = logging.getLogger(__name__)

# Absolute staleness ceiling, never configurable.
STALENESS_PERIOD = 24 * 60 * 60

DEFAULT_PRICE_UPDATE_INTERVAL = 12 * 60 * 60


class RateStore:
    """Authoritative rate table and global update timestamp.

    :ivar rates: Dict mapping token address to its 18-decimal rate.
    :ivar last_global_price_update: Unix timestamp of the last successful pass.
    :ivar price_update_interval: Desired refresh cadence in seconds.
    """

    def __init__(
        self,
        roles: RoleRegistry,
        price_update_interval: int = DEFAULT_PRICE_UPDATE_INTERVAL,
    ) -> None:
        """Initialize the store.

        :param roles: Role registry used for admin checks.
        :param price_update_interval: Initial refresh cadence in seconds.
        """
        self.roles = roles
        self.rates: dict[str, int] = {}
        self.last_global_price_update: int = 0
        self.price_update_interval: int = price_update_interval

    def get_rate(self, token: str) -> int:
        """Return the stored rate for a token, or 0 if none is stored."""
        return self.rates.get(token, 0)

    def set_rate(self, token: str, value: int) -> None:
        """Overwrite a token's rate unconditionally."""
        old = self.rates.get(token, 0)
        self.rates[token] = value
        logger.debug(f"Rate for {token}: {old} -> {value}")

    def clear_rate(self, token: str) -> None:
        self.rates.pop(token, None)

    def mark_updated(self, timestamp: int) -> None:
        """Record a refresh pass that made progress.

        :param timestamp: Unix timestamp of the pass.
        """
        self.last_global_price_update = timestamp

    def last_price_update(self) -> int:
        return self.last_global_price_update

    def are_prices_stale(self) -> bool:
        """Check whether stored prices must be refreshed.

        :returns: True if the last update is older than the configured
            interval or the fixed staleness ceiling.
        """
        age = int(time.time()) - self.last_global_price_update
        return age > self.price_update_interval or age > STALENESS_PERIOD

    def set_price_update_interval(self, ctx: AuthContext, interval: int) -> None:
        """Change the refresh cadence. Requires ADMIN.

        :param ctx: Authorization context of the call.
        :param interval: New interval in seconds.
        :raises RoleError: If the caller is not an admin.
        :raises ValueError: If the interval is not positive.
        """
        self.roles.require(ctx, Role.ADMIN)
        if interval <= 0:
            raise ValueError("price update interval must be positive")
        logger.info(
            f"Price update interval: {self.price_update_interval}s -> {interval}s"
        )
        self.price_update_interval = interval
