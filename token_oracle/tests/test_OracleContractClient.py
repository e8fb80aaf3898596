"""Unit tests for the on-chain oracle client and transaction submitter."""

from unittest.mock import MagicMock

import pytest

from token_oracle.src.errors import TransactionFailed
from token_oracle.src.OracleContractClient import OracleContractClient
from token_oracle.src.TxSubmitter import TxSubmitter

TX_HASH = bytes.fromhex("ab" * 32)


def make_client(would_update: bool) -> tuple[OracleContractClient, MagicMock, MagicMock]:
    contract = MagicMock()
    contract.address = "0xOracle"
    refresh = contract.functions.updateAllPricesIfNeeded.return_value
    refresh.call.return_value = would_update
    refresh.build_transaction.return_value = {"data": "0xrefresh"}
    contract.functions.lastPriceUpdate.return_value.call.return_value = 123

    submitter = MagicMock()
    submitter.submit_tx.return_value = {"transactionHash": TX_HASH, "status": 1}
    return OracleContractClient(contract, submitter, gas_price_fn=lambda: 5), contract, submitter


class TestOracleContractClient:
    """Test simulate-then-submit behavior."""

    def test_submits_when_simulation_updates(self) -> None:
        client, contract, submitter = make_client(would_update=True)

        assert client.update_all_prices_if_needed() is True
        contract.functions.updateAllPricesIfNeeded.return_value.build_transaction.assert_called_once_with(
            {"gasPrice": 5}
        )
        submitter.submit_tx.assert_called_once_with({"data": "0xrefresh"})

    def test_skips_when_fresh(self) -> None:
        """No transaction is sent when the simulation reports no update."""
        client, _, submitter = make_client(would_update=False)

        assert client.update_all_prices_if_needed() is False
        submitter.submit_tx.assert_not_called()

    def test_skip_reads_schedule(self) -> None:
        """The skip path reports the on-chain last update and interval."""
        client, contract, _ = make_client(would_update=False)
        contract.functions.priceUpdateInterval.return_value.call.return_value = 43200

        assert client.last_price_update() == 123
        assert client.price_update_interval() == 43200
        client.update_all_prices_if_needed()
        contract.functions.priceUpdateInterval.assert_called()


class TestTxSubmitter:
    """Test receipt handling."""

    def make_w3(self, status: int) -> MagicMock:
        w3 = MagicMock()
        w3.eth.send_transaction.return_value = TX_HASH
        w3.eth.wait_for_transaction_receipt.return_value = {
            "status": status,
            "blockNumber": 10,
            "gasUsed": 21000,
            "transactionHash": TX_HASH,
        }
        return w3

    def test_success(self) -> None:
        w3 = self.make_w3(status=1)
        receipt = TxSubmitter(w3, receipt_timeout=5).submit_tx({"to": "0x"})

        assert receipt["blockNumber"] == 10
        w3.eth.wait_for_transaction_receipt.assert_called_once_with(TX_HASH, timeout=5)

    def test_revert_raises(self) -> None:
        w3 = self.make_w3(status=0)

        with pytest.raises(TransactionFailed) as exc_info:
            TxSubmitter(w3).submit_tx({"to": "0x"})
        assert exc_info.value.tx_hash == "0x" + "ab" * 32
