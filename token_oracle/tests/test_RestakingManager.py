"""Unit tests for RestakingManager wiring and the CLI helpers."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from eth_account import Account

from token_oracle.main import parse_daily_at
from token_oracle.src.DeploymentRefresher import DeploymentData
from token_oracle.src.RestakingManager import ManagerSettings, RestakingManager
from token_oracle.tests.fakes import FALLBACK, FEED_A, POOL_B

DEPLOYMENT = DeploymentData(
    oracle_address=FEED_A, manager_address=POOL_B, liquid_token_address=FALLBACK, timestamp=1
)


@pytest.fixture
def make_manager():
    def factory(**overrides) -> RestakingManager:
        settings = ManagerSettings(
            rpc_url="http://node.test:8545", private_key=Account.create().key.hex(), **overrides
        )
        manager = RestakingManager(settings)
        manager.refresher = MagicMock()
        manager.refresher.refresh = AsyncMock(return_value=DEPLOYMENT)
        manager.contract_utility.contract = MagicMock(side_effect=lambda name, address: (name, address))
        return manager

    return factory


class TestRestakingManager:
    """Test job bodies and contract rebinding."""

    @pytest.mark.asyncio
    async def test_update_prices(self, make_manager) -> None:
        manager = make_manager()
        with patch("token_oracle.src.RestakingManager.OracleContractClient") as client_cls:
            client_cls.return_value.update_all_prices_if_needed.return_value = True

            assert await manager.update_prices() is True
            assert await manager.update_prices() is True

        # Bound once while the deployment is unchanged
        client_cls.assert_called_once()
        assert client_cls.call_args.args[0] == ("TokenRegistryOracle", FEED_A)
        assert manager.refresher.refresh.await_count == 2

    @pytest.mark.asyncio
    async def test_update_prices_requires_bound_oracle(self, make_manager) -> None:
        manager = make_manager()
        with patch.object(manager, "refresh_deployment", AsyncMock(return_value=DEPLOYMENT)):
            with pytest.raises(RuntimeError, match="not bound"):
                await manager.update_prices()

    @pytest.mark.asyncio
    async def test_rebinds_on_new_deployment(self, make_manager) -> None:
        manager = make_manager()
        with patch("token_oracle.src.RestakingManager.OracleContractClient") as client_cls:
            await manager.refresh_deployment()
            manager.refresher.refresh.return_value = DeploymentData(POOL_B, POOL_B, FALLBACK, 2)
            await manager.refresh_deployment()

        assert client_cls.call_count == 2
        assert client_cls.call_args.args[0] == ("TokenRegistryOracle", POOL_B)

    @pytest.mark.asyncio
    async def test_address_override(self, make_manager) -> None:
        manager = make_manager(oracle_address=POOL_B)
        with patch("token_oracle.src.RestakingManager.OracleContractClient") as client_cls:
            deployment = await manager.refresh_deployment()

        assert deployment.oracle_address == POOL_B
        assert client_cls.call_args.args[0] == ("TokenRegistryOracle", POOL_B)

    @pytest.mark.asyncio
    async def test_daily_without_lat_api(self, make_manager) -> None:
        manager = make_manager()
        with patch("token_oracle.src.RestakingManager.OracleContractClient"):
            await manager.daily_responsibilities()

        assert manager.planner is None
        manager.refresher.refresh.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_daily_stakes(self, make_manager) -> None:
        manager = make_manager(lat_api_url="http://lat.test")
        with (
            patch("token_oracle.src.RestakingManager.OracleContractClient"),
            patch("token_oracle.src.RestakingManager.StakingPlanner") as planner_cls,
        ):
            planner_cls.return_value.stake_unstaked_assets = AsyncMock(return_value=[])
            await manager.daily_responsibilities()

        assert planner_cls.call_args.kwargs["liquid_token_address"] == FALLBACK
        assert planner_cls.call_args.kwargs["manager"] == ("LiquidTokenManager", POOL_B)
        planner_cls.return_value.stake_unstaked_assets.assert_awaited_once()

    def test_scheduler_settings(self, make_manager) -> None:
        manager = make_manager(price_update_frequency=60, max_retries=1, retry_delay=5)

        assert manager.scheduler.price_update_frequency == 60
        assert manager.scheduler.price_job.max_retries == 1
        assert manager.scheduler.daily_job.retry_delay == 5


class TestParseDailyAt:
    """Test the DAILY_AT option parser."""

    @pytest.mark.parametrize(
        "value,expected",
        [("00:05", timedelta(minutes=5)), ("13:30", timedelta(hours=13, minutes=30)), ("6", timedelta(hours=6))],
    )
    def test_valid(self, value, expected) -> None:
        assert parse_daily_at(value) == expected

    @pytest.mark.parametrize("value", ["24:00", "-1:00", "noon", "12:xx"])
    def test_invalid(self, value) -> None:
        with pytest.raises(ValueError):
            parse_daily_at(value)
