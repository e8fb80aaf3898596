"""SourceReader: Abstract read-only access to external price sources."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RoundData:
    """Result of an aggregator feed's ``latestRoundData()``.

    :ivar round_id: Round identifier.
    :ivar answer: Reported value in the feed's own decimals.
    :ivar started_at: Unix timestamp the round started.
    :ivar updated_at: Unix timestamp the answer was last updated.
    :ivar answered_in_round: Round in which the answer was computed.
    """

    round_id: int
    answer: int
    started_at: int
    updated_at: int
    answered_in_round: int


class SourceReader(ABC):
    """Interface for reading price sources.

    Implementations may raise any exception on failure; the resolver treats
    every exception as a failed lookup.
    """

    @abstractmethod
    def latest_round_data(self, feed: str) -> RoundData:
        """Read the latest round of an aggregator feed.

        :param feed: Feed contract address.
        :returns: Latest round data.
        """
        pass

    @abstractmethod
    def feed_decimals(self, feed: str) -> int:
        """Read the decimal precision reported by an aggregator feed.

        :param feed: Feed contract address.
        :returns: Number of decimals.
        """
        pass

    @abstractmethod
    def pool_rate(self, pool: str) -> int:
        """Read a pool's exchange rate in the pool's 18-decimal convention.

        :param pool: Pool contract address.
        :returns: Raw exchange rate.
        """
        pass

    @abstractmethod
    def static_call(self, target: str, data: bytes) -> bytes:
        """Perform a read-only call and return the raw result.

        :param target: Contract address.
        :param data: Calldata.
        :returns: Raw return data.
        """
        pass
