"""PriceResolver: Per-token primary/fallback price resolution.

Algorithm:
    1. Look up the token's decoded source wiring
    2. Query the primary source according to its kind:
        - feed aggregator: latest round, rejected if non-positive, incomplete
          or older than STALENESS_PERIOD, scaled from the feed's decimals to 18
        - pool: virtual price in the pool's 18 decimal convention
        - protocol accessor: read-only call by selector, uint256 result
    3. If the primary lookup fails, call the fallback by selector and decode a
       uint256 that is taken as already normalized to 18 decimals
    4. Report failure if both lookups fail

Resolution never raises and never writes state.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from eth_abi import decode

from .ConfigRegistry import ConfigRegistry
from .errors import StaleSourceData
from .RateStore import STALENESS_PERIOD
from .SourceReader import SourceReader
from .TokenConfig import (
    PRICE_DECIMALS,
    ContractCall,
    FeedAggregatorSource,
    PoolSource,
    PrimarySource,
    ProtocolCallSource,
)

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    """Outcome of resolving one token.

    :ivar token: Token address.
    :ivar price: 18-decimal price, or 0 if resolution failed.
    :ivar source: "primary", "fallback", or None on failure.
    :ivar errors: Failure reasons collected along the way.
    """

    token: str
    price: int = 0
    source: str | None = None
    errors: list[str] | None = None

    @property
    def ok(self) -> bool:
        """Check if a positive price was resolved."""
        return self.source is not None and self.price > 0


def _describe(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


def scale_to_precision(value: int, decimals: int) -> int:
    """Scale a fixed-point value to 18 decimals.

    :param value: Raw value.
    :param decimals: Decimals of the raw value.
    :returns: The value expressed with 18 decimals.

    .. code-block:: python

        >>> scale_to_precision(150000000, 8)
        1500000000000000000
    """
    if decimals <= PRICE_DECIMALS:
        return value * 10 ** (PRICE_DECIMALS - decimals)
    return value // 10 ** (decimals - PRICE_DECIMALS)


class PriceResolver:
    """Resolves normalized token prices from configured sources.

    :ivar registry: Registry holding each token's wiring.
    :ivar reader: Reader used to query external sources.
    """

    def __init__(self, registry: ConfigRegistry, reader: SourceReader) -> None:
        """Initialize the resolver.

        :param registry: Config registry consulted for source wiring.
        :param reader: Source reader for external calls.
        """
        self.registry = registry
        self.reader = reader

    def resolve(self, token: str) -> tuple[int, bool]:
        """Resolve a token's price.

        :param token: Token address.
        :returns: Tuple of (price, ok). Price is 0 when ok is False.
        """
        result = self.resolve_detailed(token)
        return result.price, result.ok

    def resolve_detailed(self, token: str) -> Resolution:
        """Resolve a token's price, keeping the failure reasons.

        :param token: Token address.
        :returns: Resolution describing the outcome.
        """
        config = self.registry.get_config(token)
        if config is None:
            return Resolution(token=token, errors=["token not configured"])

        errors: list[str] = []
        try:
            price = self._read_primary(config.token, config.primary)
            if price > 0:
                return Resolution(token=config.token, price=price, source="primary")
            errors.append("primary: non-positive price")
        except Exception as e:
            errors.append(f"primary: {_describe(e)}")
            logger.debug(f"[{config.token}] Primary {config.primary.address} failed: {e!r}")

        if config.fallback is None:
            errors.append("fallback: not configured")
            return Resolution(token=config.token, errors=errors)

        try:
            price = self._call_uint(config.token, config.fallback)
            if price > 0:
                logger.info(f"[{config.token}] Using fallback {config.fallback.address}")
                return Resolution(token=config.token, price=price, source="fallback")
            errors.append("fallback: non-positive price")
        except Exception as e:
            errors.append(f"fallback: {_describe(e)}")
            logger.debug(f"[{config.token}] Fallback {config.fallback.address} failed: {e!r}")

        return Resolution(token=config.token, errors=errors)

    def _read_primary(self, token: str, source: PrimarySource) -> int:
        if isinstance(source, FeedAggregatorSource):
            return self._read_feed(source.address)
        if isinstance(source, PoolSource):
            return self.reader.pool_rate(source.address)
        if isinstance(source, ProtocolCallSource):
            return self._call_uint(token, source)
        raise TypeError(f"Unsupported source {source!r}")

    def _read_feed(self, feed: str) -> int:
        data = self.reader.latest_round_data(feed)
        if data.answer <= 0:
            raise StaleSourceData(f"non-positive answer {data.answer}")
        if data.updated_at == 0 or data.answered_in_round < data.round_id:
            raise StaleSourceData(f"incomplete round {data.round_id}")
        age = int(time.time()) - data.updated_at
        if age > STALENESS_PERIOD:
            raise StaleSourceData(f"answer is {age}s old")

        decimals = self.reader.feed_decimals(feed)
        return scale_to_precision(data.answer, decimals)

    def _call_uint(self, token: str, call: ContractCall) -> int:
        raw = self.reader.static_call(call.address, call.calldata(token))
        (value,) = decode(["uint256"], raw)
        return value
