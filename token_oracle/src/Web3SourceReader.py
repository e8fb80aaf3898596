"""Web3SourceReader: SourceReader backed by JSON-RPC ``eth_call``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from web3 import Web3

from .ContractUtility import ContractUtility
from .SourceReader import RoundData, SourceReader

if TYPE_CHECKING:
    from web3.contract import Contract

logger = logging.getLogger(__name__)


class Web3SourceReader(SourceReader):
    """Reads feeds, pools and arbitrary accessors through a Web3 connection.

    :ivar w3: Web3 instance used for calls.
    """

    def __init__(self, w3: Web3) -> None:
        """Initialize the reader.

        :param w3: Connected Web3 instance.
        """
        self.w3 = w3
        self._feed_abi = ContractUtility.get_abi("AggregatorV3")
        self._pool_abi = ContractUtility.get_abi("CurvePool")
        self._contracts: dict[tuple[str, str], Contract] = {}

    def _contract(self, address: str, kind: str) -> Contract:
        key = (address, kind)
        if key not in self._contracts:
            abi = self._feed_abi if kind == "feed" else self._pool_abi
            self._contracts[key] = self.w3.eth.contract(
                address=Web3.to_checksum_address(address), abi=abi
            )
        return self._contracts[key]

    def latest_round_data(self, feed: str) -> RoundData:
        round_id, answer, started_at, updated_at, answered_in_round = (
            self._contract(feed, "feed").functions.latestRoundData().call()
        )
        return RoundData(
            round_id=round_id,
            answer=answer,
            started_at=started_at,
            updated_at=updated_at,
            answered_in_round=answered_in_round,
        )

    def feed_decimals(self, feed: str) -> int:
        return self._contract(feed, "feed").functions.decimals().call()

    def pool_rate(self, pool: str) -> int:
        return self._contract(pool, "pool").functions.get_virtual_price().call()

    def static_call(self, target: str, data: bytes) -> bytes:
        logger.debug(f"eth_call {target} data=0x{data.hex()}")
        result = self.w3.eth.call(
            {"to": Web3.to_checksum_address(target), "data": Web3.to_hex(data)}
        )
        return bytes(result)
