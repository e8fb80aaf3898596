"""TokenConfig: Per-token price source wiring.

The raw wiring accepted by ``configureToken`` (source type, primary address,
argument flag, fallback address, fallback selector) is decoded once into a
tagged variant so the resolver never re-interprets raw bytes on lookup.

.. code-block:: python

    >>> config = TokenConfig.from_wiring(
    ...     token="0x00000000000000000000000000000000000000a1",
    ...     primary_type=SourceKind.FEED_AGGREGATOR,
    ...     primary_source="0x00000000000000000000000000000000000000f1",
    ...     needs_arg=False,
    ...     fallback_source=ZERO_ADDRESS,
    ...     fallback_selector="0x00000000",
    ... )
    >>> config.fallback is None
    True
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from eth_abi import encode
from web3 import Web3

from .errors import ConfigurationError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Fixed-point scale of every stored rate.
PRECISION = 10**18
PRICE_DECIMALS = 18


class SourceKind(IntEnum):
    """Kinds of primary price source, numbered as on-chain."""

    FEED_AGGREGATOR = 1
    POOL_DERIVED = 2
    PROTOCOL_VIEW_CALL = 3


def normalize_address(value: str, what: str = "address") -> str:
    """Validate an address and return it checksummed.

    :param value: Hex address.
    :param what: Field name used in error messages.
    :returns: Checksummed address.
    :raises ConfigurationError: If the address is malformed or zero.
    """
    if not isinstance(value, str) or not Web3.is_address(value):
        raise ConfigurationError(f"Invalid {what}: {value!r}")
    address = Web3.to_checksum_address(value)
    if address == ZERO_ADDRESS:
        raise ConfigurationError(f"{what} must not be the zero address")
    return address


def parse_selector(value: bytes | str) -> bytes:
    """Parse a 4-byte function selector.

    :param value: Raw bytes or a "0x"-prefixed hex string.
    :returns: The selector as 4 bytes.
    :raises ConfigurationError: If the value is not exactly 4 bytes.
    """
    if isinstance(value, str):
        try:
            value = bytes.fromhex(value[2:] if value.startswith("0x") else value)
        except ValueError as e:
            raise ConfigurationError(f"Invalid selector: {e}") from e
    if not isinstance(value, (bytes, bytearray)) or len(value) != 4:
        raise ConfigurationError(f"Selector must be 4 bytes, got {value!r}")
    return bytes(value)


@dataclass(frozen=True)
class FeedAggregatorSource:
    """Aggregator feed exposing ``latestRoundData()`` and ``decimals()``."""

    address: str
    kind = SourceKind.FEED_AGGREGATOR


@dataclass(frozen=True)
class PoolSource:
    """Pool exposing ``get_virtual_price()`` with 18 decimal precision."""

    address: str
    kind = SourceKind.POOL_DERIVED


@dataclass(frozen=True)
class ContractCall:
    """A read-only call by selector, optionally taking the token as argument.

    :ivar address: Contract to call.
    :ivar selector: 4-byte function selector.
    :ivar needs_arg: Whether the token address is passed as sole argument.
    """

    address: str
    selector: bytes
    needs_arg: bool

    def calldata(self, token: str) -> bytes:
        """Build the calldata for this call.

        :param token: Token address, appended ABI-encoded when needs_arg is set.
        :returns: Selector followed by the encoded argument, if any.
        """
        if self.needs_arg:
            return self.selector + encode(["address"], [token])
        return self.selector


@dataclass(frozen=True)
class ProtocolCallSource(ContractCall):
    """Protocol accessor on the primary source contract."""

    kind = SourceKind.PROTOCOL_VIEW_CALL


@dataclass(frozen=True)
class FallbackCall(ContractCall):
    """Generic fallback call whose uint256 result is already 18 decimals."""

    pass


PrimarySource = FeedAggregatorSource | PoolSource | ProtocolCallSource


@dataclass(frozen=True)
class TokenConfig:
    """Decoded source wiring for one token.

    :ivar token: Checksummed token address.
    :ivar primary: Primary source variant.
    :ivar fallback: Fallback call, or None when no fallback is configured.
    """

    token: str
    primary: PrimarySource
    fallback: FallbackCall | None

    @classmethod
    def from_wiring(
        cls,
        token: str,
        primary_type: int,
        primary_source: str,
        needs_arg: bool,
        fallback_source: str,
        fallback_selector: bytes | str,
    ) -> TokenConfig:
        """Validate raw wiring and decode it into a TokenConfig.

        :param token: Token address.
        :param primary_type: SourceKind value of the primary source.
        :param primary_source: Address of the primary source contract.
        :param needs_arg: Whether calls by selector take the token as argument.
        :param fallback_source: Fallback contract, zero address for none.
        :param fallback_selector: 4-byte selector of the fallback accessor.
        :returns: Decoded configuration.
        :raises ConfigurationError: If any field is invalid.
        """
        token = normalize_address(token, "token")
        try:
            kind = SourceKind(int(primary_type))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Unknown primary source type: {primary_type!r}") from e
        primary_address = normalize_address(primary_source, "primary source")
        selector = parse_selector(fallback_selector)

        primary: PrimarySource
        if kind is SourceKind.FEED_AGGREGATOR:
            primary = FeedAggregatorSource(primary_address)
        elif kind is SourceKind.POOL_DERIVED:
            primary = PoolSource(primary_address)
        else:
            primary = ProtocolCallSource(primary_address, selector, bool(needs_arg))

        fallback = None
        if fallback_source:
            if not Web3.is_address(fallback_source):
                raise ConfigurationError(f"Invalid fallback source: {fallback_source!r}")
            fallback_address = Web3.to_checksum_address(fallback_source)
            if fallback_address != ZERO_ADDRESS:
                fallback = FallbackCall(fallback_address, selector, bool(needs_arg))

        return cls(token=token, primary=primary, fallback=fallback)
