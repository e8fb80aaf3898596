"""Unit tests for StakingPlanner."""

from unittest.mock import MagicMock

import httpx
import pytest

from token_oracle.src.StakingPlanner import NodeAllocation, StakingPlanner, plan_allocations

LAT = "0x000000000000000000000000000000000000aaaa"
STETH = "0x000000000000000000000000000000000000e001"
RETH = "0x000000000000000000000000000000000000e002"
UNKNOWN = "0x000000000000000000000000000000000000e003"
OPERATOR = "0x0000000000000000000000000000000000000a0a"
ZERO = "0x0000000000000000000000000000000000000000"

NODES = [
    {"nodeId": 0, "operatorDelegation": OPERATOR},
    {"nodeId": 1, "operatorDelegation": ZERO},
    {"nodeId": 2, "operatorDelegation": OPERATOR},
]
TOKENS = [{"address": "0x000000000000000000000000000000000000E001"}, {"address": RETH}]


class TestPlanAllocations:
    """Test the allocation policy."""

    def test_split_across_delegated_nodes(self) -> None:
        """99.5% of each balance is split evenly over delegated nodes only."""
        allocations = plan_allocations(
            [{"asset": STETH, "balance": "1000"}, {"asset": RETH, "balance": "2000000"}],
            NODES,
            TOKENS,
        )

        assert allocations == [
            NodeAllocation(0, [STETH, RETH], [497, 995000]),
            NodeAllocation(2, [STETH, RETH], [497, 995000]),
        ]

    def test_unknown_assets_skipped(self) -> None:
        allocations = plan_allocations([{"asset": UNKNOWN, "balance": "10"}], NODES, TOKENS)
        assert allocations == []

    def test_dust_skipped(self) -> None:
        """Balances rounding down to nothing produce no allocation."""
        allocations = plan_allocations([{"asset": STETH, "balance": "1"}], NODES, TOKENS)
        assert allocations == []

    def test_no_delegated_nodes(self) -> None:
        nodes = [{"nodeId": 1, "operatorDelegation": ZERO}, {"nodeId": 3}]
        allocations = plan_allocations([{"asset": STETH, "balance": "1000"}], nodes, TOKENS)
        assert allocations == []

    def test_as_tuple(self) -> None:
        assert NodeAllocation(4, [STETH], [10]).as_tuple() == (4, [STETH], [10])


def lat_api(assets, nodes, tokens, fail_path: str | None = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if fail_path and path.endswith(fail_path):
            return httpx.Response(503)
        if path == f"/lat/{LAT}":
            return httpx.Response(200, json={"assets": assets})
        if path == f"/lat/{LAT}/staker-nodes":
            return httpx.Response(200, json={"stakerNodes": nodes})
        if path == f"/lat/{LAT}/tokens":
            return httpx.Response(200, json={"data": tokens})
        return httpx.Response(404)

    return httpx.MockTransport(handler)


def make_planner(transport: httpx.MockTransport) -> tuple[StakingPlanner, MagicMock, MagicMock]:
    manager = MagicMock()
    manager.functions.stakeAssetsToNodes.return_value.build_transaction.return_value = {"data": "0x"}
    submitter = MagicMock()
    planner = StakingPlanner(
        api_url="http://lat.test/",
        liquid_token_address=LAT,
        manager=manager,
        submitter=submitter,
        gas_price_fn=lambda: 7,
        client=httpx.AsyncClient(transport=transport),
    )
    return planner, manager, submitter


class TestStakingPlanner:
    """Test the fetch-plan-submit workflow."""

    @pytest.mark.asyncio
    async def test_stakes_and_submits(self) -> None:
        planner, manager, submitter = make_planner(
            lat_api([{"asset": STETH, "balance": "2000"}], NODES, TOKENS)
        )

        allocations = await planner.stake_unstaked_assets()

        assert [a.node_id for a in allocations] == [0, 2]
        manager.functions.stakeAssetsToNodes.assert_called_once_with(
            [(0, [STETH], [995]), (2, [STETH], [995])]
        )
        manager.functions.stakeAssetsToNodes.return_value.build_transaction.assert_called_once_with(
            {"gasPrice": 7}
        )
        submitter.submit_tx.assert_called_once_with({"data": "0x"})

    @pytest.mark.asyncio
    async def test_nothing_to_stake(self) -> None:
        """No allocations means no transaction."""
        planner, manager, submitter = make_planner(lat_api([], NODES, TOKENS))

        assert await planner.stake_unstaked_assets() == []
        manager.functions.stakeAssetsToNodes.assert_not_called()
        submitter.submit_tx.assert_not_called()

    @pytest.mark.asyncio
    async def test_api_failure_raises(self) -> None:
        planner, _, submitter = make_planner(lat_api([], NODES, TOKENS, fail_path="/staker-nodes"))

        with pytest.raises(RuntimeError, match="/staker-nodes failed: 503"):
            await planner.stake_unstaked_assets()
        submitter.submit_tx.assert_not_called()
