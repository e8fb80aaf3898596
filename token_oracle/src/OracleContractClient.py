"""OracleContractClient: On-chain TokenRegistryOracle access for the manager.

State-changing calls are simulated with ``eth_call`` first; a refresh
transaction is only submitted when the simulation reports that prices would
actually be updated.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from web3 import Web3

if TYPE_CHECKING:
    from web3.contract import Contract

    from .TxSubmitter import TxSubmitter

logger = logging.getLogger(__name__)


class OracleContractClient:
    """Client for a deployed TokenRegistryOracle contract.

    :ivar contract: Web3 contract bound to the oracle ABI.
    :ivar submitter: Transaction submitter holding the updater's key.
    """

    def __init__(
        self,
        contract: Contract,
        submitter: TxSubmitter,
        gas_price_fn: Callable[[], int] | None = None,
    ) -> None:
        """Initialize the client.

        :param contract: Oracle contract instance.
        :param submitter: Transaction submitter.
        :param gas_price_fn: Callable returning the current gas price.
        """
        self.contract = contract
        self.submitter = submitter
        self.gas_price_fn = gas_price_fn

    @property
    def address(self) -> str:
        return self.contract.address

    def _tx_defaults(self) -> dict:
        return {"gasPrice": self.gas_price_fn()} if self.gas_price_fn else {}

    def last_price_update(self) -> int:
        return self.contract.functions.lastPriceUpdate().call()

    def price_update_interval(self) -> int:
        return self.contract.functions.priceUpdateInterval().call()

    def update_all_prices_if_needed(self) -> bool:
        """Trigger a refresh pass on-chain if it would update anything.

        :returns: True if a refresh transaction was mined.
        :raises TransactionFailed: If the refresh transaction reverted.
        """
        fn = self.contract.functions.updateAllPricesIfNeeded()
        if not fn.call():
            logger.info(
                f"Oracle {self.address}: no update needed "
                f"(last update {self.last_price_update()}, "
                f"interval {self.price_update_interval()}s)"
            )
            return False

        receipt = self.submitter.submit_tx(fn.build_transaction(self._tx_defaults()))
        logger.info(
            f"Oracle {self.address}: prices updated "
            f"(tx {Web3.to_hex(receipt['transactionHash'])})"
        )
        return True

