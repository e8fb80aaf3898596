"""TxSubmitter: Direct Web3 transaction submission."""

import logging

from web3 import Web3
from web3.types import TxParams, TxReceipt

from .errors import TransactionFailed

logger = logging.getLogger(__name__)


class TxSubmitter:
    """Signs (through the Web3 middleware) and sends transactions.

    :ivar w3: Web3 instance with a default signing account.
    :ivar receipt_timeout: Seconds to wait for a receipt.
    """

    def __init__(self, w3: Web3, receipt_timeout: float = 120.0) -> None:
        """Initialize the submitter.

        :param w3: Web3 instance with signing middleware installed.
        :param receipt_timeout: Seconds to wait for a receipt (default: 120).
        """
        self.w3 = w3
        self.receipt_timeout = receipt_timeout

    def submit_tx(self, tx: TxParams) -> TxReceipt:
        """Send a transaction and wait for it to be mined.

        :param tx: Transaction parameters.
        :returns: Transaction receipt.
        :raises TransactionFailed: If the transaction reverted.
        """
        tx_hash = self.w3.eth.send_transaction(tx)
        tx_receipt = self.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.receipt_timeout
        )

        if tx_receipt["status"] != 1:
            raise TransactionFailed(Web3.to_hex(tx_hash))

        logger.debug(
            f"Transaction {Web3.to_hex(tx_hash)} mined in block "
            f"{tx_receipt['blockNumber']} (gas used {tx_receipt['gasUsed']})"
        )
        return tx_receipt
