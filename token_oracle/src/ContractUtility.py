"""ContractUtility: Web3 initialization and contract ABI loading."""

import json
import os
from pathlib import Path

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.contract import Contract
from web3.middleware import SignAndSendRawMiddlewareBuilder

# Well-known anvil endpoint used when no RPC URL is configured.
DEFAULT_RPC_URL = "http://127.0.0.1:8545"


class ContractUtility:
    """Utility for Web3 connection and contract ABI loading.

    :ivar rpc_url: Node RPC URL.
    :ivar w3: Configured Web3 instance.
    :ivar account: Signing account, or None for read-only use.
    """

    def __init__(self, rpc_url: str | None = None, private_key: str | None = None) -> None:
        """Initialize the contract utility.

        :param rpc_url: RPC URL. Falls back to the RPC_URL env var, then anvil.
        :param private_key: Optional key of the account signing transactions.
        """
        self.rpc_url = rpc_url or os.environ.get("RPC_URL") or DEFAULT_RPC_URL
        self.w3 = Web3(Web3.HTTPProvider(self.rpc_url))

        self.account: LocalAccount | None = None
        if private_key:
            self.account = Account.from_key(private_key)
            self.w3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(self.account))
            self.w3.eth.default_account = self.account.address

    def contract(self, contract_name: str, address: str) -> Contract:
        """Bind a contract ABI to an address.

        :param contract_name: Name of the ABI file (e.g., "TokenRegistryOracle").
        :param address: Contract address.
        :returns: Web3 contract instance.
        """
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(address),
            abi=self.get_abi(contract_name),
        )

    @staticmethod
    def get_abi(contract_name: str) -> list:
        """Fetch the ABI of a contract from the packaged abi folder.

        :param contract_name: Name of the contract (e.g., "AggregatorV3").
        :returns: ABI list.
        """
        abi_path = (Path(__file__).parent.parent / "abi" / f"{contract_name}.json").resolve()

        with open(abi_path, "r") as file:
            contract_data = json.load(file)

        return contract_data["abi"]
