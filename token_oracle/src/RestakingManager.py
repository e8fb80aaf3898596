"""RestakingManager: Main orchestrator of the off-chain manager process.

Architecture:
    - UpdateScheduler runs two independent job streams in one event loop
    - Price job: re-sync deployment data, then ask the on-chain oracle to
      refresh all prices if they are stale
    - Daily job: re-sync deployment data, then stake idle liquid token assets
      across delegated staker nodes
    - Job failures are retried with a fixed delay and never crash the process
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import timedelta

from .ContractUtility import ContractUtility
from .DeploymentRefresher import DeploymentData, DeploymentRefresher
from .OracleContractClient import OracleContractClient
from .StakingPlanner import StakingPlanner
from .TxSubmitter import TxSubmitter
from .UpdateScheduler import (
    DAILY_OFFSET,
    MAX_RETRIES,
    PRICE_UPDATE_FREQUENCY,
    RETRY_DELAY,
    UpdateScheduler,
)

logger = logging.getLogger(__name__)


@dataclass
class ManagerSettings:
    """Runtime settings of the manager process.

    :ivar rpc_url: Node RPC URL.
    :ivar private_key: Key of the account holding the rate-updater role.
    :ivar deployment: Deployment name ("local" skips the GitHub fetch).
    :ivar deployment_path: Local deployment data file.
    :ivar deployments_repo: GitHub "owner/repo/path" of deployment outputs.
    :ivar github_access_token: Token for the deployments repo.
    :ivar lat_api_url: Base URL of the LAT API (daily staking is skipped if unset).
    :ivar oracle_address: Oracle address overriding the deployment data.
    :ivar manager_address: Manager address overriding the deployment data.
    :ivar price_update_frequency: Seconds between price cycles.
    :ivar max_retries: Retries per job trigger.
    :ivar retry_delay: Seconds between retries.
    :ivar daily_offset: Daily trigger offset from midnight UTC.
    """

    rpc_url: str
    private_key: str
    deployment: str = "local"
    deployment_path: str = "script/outputs/local/deployment_data.json"
    deployments_repo: str | None = None
    github_access_token: str | None = None
    lat_api_url: str | None = None
    oracle_address: str | None = None
    manager_address: str | None = None
    price_update_frequency: float = PRICE_UPDATE_FREQUENCY
    max_retries: int = MAX_RETRIES
    retry_delay: float = RETRY_DELAY
    daily_offset: timedelta = DAILY_OFFSET


class RestakingManager:
    """Keeps on-chain token rates fresh and stakes idle assets.

    :ivar settings: Manager settings.
    :ivar refresher: Deployment data refresher.
    :ivar scheduler: Scheduler running the price and daily jobs.
    :ivar oracle: Client for the current oracle deployment, once known.
    """

    def __init__(self, settings: ManagerSettings) -> None:
        """Initialize the manager.

        :param settings: Manager settings.
        """
        self.settings = settings
        self.contract_utility = ContractUtility(settings.rpc_url, settings.private_key)
        self.w3 = self.contract_utility.w3
        self.submitter = TxSubmitter(self.w3)
        self.refresher = DeploymentRefresher(
            deployment=settings.deployment,
            output_path=settings.deployment_path,
            repo=settings.deployments_repo,
            access_token=settings.github_access_token,
        )

        self.oracle: OracleContractClient | None = None
        self.planner: StakingPlanner | None = None
        self._deployment: DeploymentData | None = None

        self.scheduler = UpdateScheduler(
            price_task=self.update_prices,
            daily_task=self.daily_responsibilities,
            price_update_frequency=settings.price_update_frequency,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay,
            daily_offset=settings.daily_offset,
        )

        logger.info(
            f"RestakingManager initialized: deployment={settings.deployment}, "
            f"updater={self.contract_utility.account.address if self.contract_utility.account else None}"
        )

    def _gas_price(self) -> int:
        return self.w3.eth.gas_price

    async def refresh_deployment(self) -> DeploymentData:
        """Re-sync deployment data and rebind contracts if addresses changed.

        :returns: Current deployment data.
        """
        deployment = await self.refresher.refresh()
        if self.settings.oracle_address:
            deployment = replace(deployment, oracle_address=self.settings.oracle_address)
        if self.settings.manager_address:
            deployment = replace(deployment, manager_address=self.settings.manager_address)
        if deployment == self._deployment:
            return deployment

        self.oracle = OracleContractClient(
            self.contract_utility.contract("TokenRegistryOracle", deployment.oracle_address),
            self.submitter,
            gas_price_fn=self._gas_price,
        )
        if self.settings.lat_api_url:
            self.planner = StakingPlanner(
                api_url=self.settings.lat_api_url,
                liquid_token_address=deployment.liquid_token_address,
                manager=self.contract_utility.contract(
                    "LiquidTokenManager", deployment.manager_address
                ),
                submitter=self.submitter,
                gas_price_fn=self._gas_price,
            )
        self._deployment = deployment
        logger.info(
            f"Bound oracle {deployment.oracle_address}, manager {deployment.manager_address}"
        )
        return deployment

    async def update_prices(self) -> bool:
        """Price job: refresh all token prices on-chain if they are stale.

        :returns: True if rates were updated.
        """
        await self.refresh_deployment()
        if self.oracle is None:
            raise RuntimeError("Oracle contract is not bound")
        return self.oracle.update_all_prices_if_needed()

    async def daily_responsibilities(self) -> None:
        """Daily job: re-sync deployment data, then stake idle assets."""
        await self.refresh_deployment()
        if self.planner is None:
            logger.info("LAT API not configured, skipping staking")
            return
        await self.planner.stake_unstaked_assets()

    async def run(self) -> None:
        """Run the scheduler until stopped."""
        await self.scheduler.run()
