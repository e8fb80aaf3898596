"""StakingPlanner: Stakes idle liquid token assets across delegated nodes.

Policy:
    - Only assets known to the token list are staked
    - 99.5% of each idle balance is staked, leaving a margin for rounding
    - Each asset is split evenly across all nodes delegated to an operator
    - Nothing is submitted when there is nothing to allocate
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

import httpx

from .TokenConfig import ZERO_ADDRESS

if TYPE_CHECKING:
    from web3.contract import Contract

    from .TxSubmitter import TxSubmitter

logger = logging.getLogger(__name__)

# Fraction of each idle balance staked, in per mille.
STAKING_RATIO_PER_MILLE = 995


@dataclass
class NodeAllocation:
    """Assets and amounts to stake into one staker node.

    :ivar node_id: Staker node identifier.
    :ivar assets: Asset addresses.
    :ivar amounts: Amounts, one per asset.
    """

    node_id: int
    assets: list[str] = field(default_factory=list)
    amounts: list[int] = field(default_factory=list)

    def as_tuple(self) -> tuple[int, list[str], list[int]]:
        return (self.node_id, self.assets, self.amounts)


def plan_allocations(
    unstaked_assets: list[dict[str, Any]],
    staker_nodes: list[dict[str, Any]],
    tokens: list[dict[str, Any]],
) -> list[NodeAllocation]:
    """Split idle balances evenly across delegated staker nodes.

    :param unstaked_assets: Entries with "asset" and "balance".
    :param staker_nodes: Entries with "nodeId" and "operatorDelegation".
    :param tokens: Supported token entries with "address".
    :returns: One allocation per delegated node, empty if nothing to stake.

    .. code-block:: python

        >>> plan_allocations(
        ...     [{"asset": "0xa", "balance": "1000"}],
        ...     [{"nodeId": 0, "operatorDelegation": "0xop"},
        ...      {"nodeId": 1, "operatorDelegation": "0xop"}],
        ...     [{"address": "0xA"}],
        ... )
        [NodeAllocation(node_id=0, assets=['0xa'], amounts=[497]), NodeAllocation(node_id=1, assets=['0xa'], amounts=[497])]
    """
    delegated = [
        node
        for node in staker_nodes
        if (node.get("operatorDelegation") or ZERO_ADDRESS).lower() != ZERO_ADDRESS
    ]
    if not delegated:
        return []

    known = {t["address"].lower() for t in tokens}
    allocations: dict[int, NodeAllocation] = {}

    for asset in unstaked_assets:
        if asset["asset"].lower() not in known:
            continue

        staking_amount = int(asset["balance"]) * STAKING_RATIO_PER_MILLE // 1000
        if staking_amount <= 0:
            continue

        amount_per_node = staking_amount // len(delegated)
        for node in delegated:
            node_id = int(node["nodeId"])
            allocation = allocations.setdefault(node_id, NodeAllocation(node_id))
            allocation.assets.append(asset["asset"])
            allocation.amounts.append(amount_per_node)

    return list(allocations.values())


class StakingPlanner:
    """Fetches liquid token state from the LAT API and stakes idle assets.

    :ivar api_url: Base URL of the LAT API.
    :ivar liquid_token_address: Address of the liquid token.
    :ivar manager: LiquidTokenManager contract.
    """

    def __init__(
        self,
        api_url: str,
        liquid_token_address: str,
        manager: Contract,
        submitter: TxSubmitter,
        gas_price_fn: Callable[[], int] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the planner.

        :param api_url: Base URL of the LAT API.
        :param liquid_token_address: Liquid token whose assets are staked.
        :param manager: LiquidTokenManager contract instance.
        :param submitter: Transaction submitter.
        :param gas_price_fn: Callable returning the current gas price.
        :param client: Optional HTTP client (created per run otherwise).
        """
        self.api_url = api_url.rstrip("/")
        self.liquid_token_address = liquid_token_address
        self.manager = manager
        self.submitter = submitter
        self.gas_price_fn = gas_price_fn
        self._client = client

    async def _get_json(self, client: httpx.AsyncClient, path: str) -> Any:
        response = await client.get(f"{self.api_url}/lat/{self.liquid_token_address}{path}")
        if not response.is_success:
            raise RuntimeError(
                f"LAT API {path or '/'} failed: {response.status_code} {response.reason_phrase}"
            )
        return response.json()

    async def fetch_state(
        self,
    ) -> tuple[list[dict[str, Any]], list[dict[str, Any]], list[dict[str, Any]]]:
        """Fetch idle assets, staker nodes and supported tokens.

        :returns: Tuple of (unstaked_assets, staker_nodes, tokens).
        :raises RuntimeError: If any LAT API request fails.
        """
        client = self._client or httpx.AsyncClient(timeout=httpx.Timeout(30.0, connect=10.0))
        try:
            lat = await self._get_json(client, "")
            nodes = await self._get_json(client, "/staker-nodes")
            tokens = await self._get_json(client, "/tokens")
        finally:
            if self._client is None:
                await client.aclose()
        return lat["assets"], nodes["stakerNodes"], tokens["data"]

    async def stake_unstaked_assets(self) -> list[NodeAllocation]:
        """Stake idle assets across delegated nodes.

        :returns: Submitted allocations, empty if nothing was staked.
        :raises RuntimeError: If the LAT API is unavailable.
        :raises TransactionFailed: If the staking transaction reverted.
        """
        unstaked, nodes, tokens = await self.fetch_state()
        allocations = plan_allocations(unstaked, nodes, tokens)
        if not allocations:
            logger.info("No unstaked assets to allocate")
            return []

        tx_defaults = {"gasPrice": self.gas_price_fn()} if self.gas_price_fn else {}
        tx_params = self.manager.functions.stakeAssetsToNodes(
            [a.as_tuple() for a in allocations]
        ).build_transaction(tx_defaults)
        self.submitter.submit_tx(tx_params)

        logger.info(
            f"Staked assets to {len(allocations)} node(s): "
            + ", ".join(f"node {a.node_id}: {len(a.assets)} asset(s)" for a in allocations)
        )
        return allocations
