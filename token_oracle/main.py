#!/usr/bin/env python3
"""Restaking Manager.

Keeps the on-chain token rate oracle fresh by triggering a refresh on a fixed
cadence, and runs the daily deployment refresh and staking workflow.

Start with env vars or CLI flags. CLI flags take precedence.
"""

import argparse
import asyncio
import logging
import os
import sys
from datetime import timedelta

from .src.RestakingManager import ManagerSettings, RestakingManager
from .src.UpdateScheduler import MAX_RETRIES, PRICE_UPDATE_FREQUENCY, RETRY_DELAY

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_daily_at(value: str) -> timedelta:
    """Parse a "HH:MM" UTC time of day into an offset from midnight.

    :param value: Time of day, e.g. "00:05".
    :returns: Offset from midnight UTC.
    :raises ValueError: If the value is not a valid time of day.
    """
    hours, _, minutes = value.partition(":")
    offset = timedelta(hours=int(hours), minutes=int(minutes or 0))
    if not timedelta(0) <= offset < timedelta(days=1):
        raise ValueError(f"Time of day out of range: {value}")
    return offset


def main() -> None:
    """Main entry point for the Restaking Manager CLI."""
    parser = argparse.ArgumentParser(
        description="Restaking Manager: token rate refresh and daily staking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Local anvil deployment
  python -m token_oracle.main --deployment local \\
      --deployment-path script/outputs/local/deployment_data.json

  # Holesky, with deployment data synced from GitHub
  python -m token_oracle.main --deployment holesky \\
      --deployments-repo org/lat-deployments/holesky

Environment variables (CLI args take precedence):
  RPC_URL, PRICE_UPDATER_PRIVATE_KEY, ORACLE_ADDRESS, MANAGER_ADDRESS,
  DEPLOYMENT, DEPLOYMENT_PATH,
  LAT_DEPLOYMENTS_REPO, GITHUB_ACCESS_TOKEN, LAT_API_URL,
  PRICE_UPDATE_FREQUENCY, MAX_RETRIES, RETRY_DELAY, DAILY_AT
""",
    )

    parser.add_argument(
        "--rpc-url",
        dest="rpc_url",
        type=str,
        help="RPC URL of the node (default: http://127.0.0.1:8545)",
        default=os.environ.get("RPC_URL") or "http://127.0.0.1:8545",
    )

    parser.add_argument(
        "--deployment",
        type=str,
        help="Deployment name: local, holesky, mainnet (default: local)",
        default=os.environ.get("DEPLOYMENT") or "local",
    )

    parser.add_argument(
        "--deployment-path",
        dest="deployment_path",
        type=str,
        help="Local deployment data file",
        default=os.environ.get("DEPLOYMENT_PATH")
        or "script/outputs/local/deployment_data.json",
    )

    parser.add_argument(
        "--deployments-repo",
        dest="deployments_repo",
        type=str,
        help="GitHub owner/repo/path holding deployment outputs",
        default=os.environ.get("LAT_DEPLOYMENTS_REPO"),
    )

    parser.add_argument(
        "--oracle-address",
        dest="oracle_address",
        type=str,
        help="TokenRegistryOracle address (overrides deployment data)",
        default=os.environ.get("ORACLE_ADDRESS"),
    )

    parser.add_argument(
        "--manager-address",
        dest="manager_address",
        type=str,
        help="LiquidTokenManager address (overrides deployment data)",
        default=os.environ.get("MANAGER_ADDRESS"),
    )

    parser.add_argument(
        "--lat-api-url",
        dest="lat_api_url",
        type=str,
        help="Base URL of the LAT API (daily staking is skipped if unset)",
        default=os.environ.get("LAT_API_URL"),
    )

    parser.add_argument(
        "--price-update-frequency",
        dest="price_update_frequency",
        type=int,
        help=f"Seconds between price updates (default: {PRICE_UPDATE_FREQUENCY})",
        default=int(os.environ.get("PRICE_UPDATE_FREQUENCY") or PRICE_UPDATE_FREQUENCY),
    )

    parser.add_argument(
        "--max-retries",
        dest="max_retries",
        type=int,
        help=f"Retries after a failed job run (default: {MAX_RETRIES})",
        default=int(os.environ.get("MAX_RETRIES") or MAX_RETRIES),
    )

    parser.add_argument(
        "--retry-delay",
        dest="retry_delay",
        type=int,
        help=f"Seconds between retries (default: {RETRY_DELAY})",
        default=int(os.environ.get("RETRY_DELAY") or RETRY_DELAY),
    )

    parser.add_argument(
        "--daily-at",
        dest="daily_at",
        type=str,
        help="UTC time of day for daily responsibilities, HH:MM (default: 00:05)",
        default=os.environ.get("DAILY_AT") or "00:05",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Validate arguments
    private_key = os.environ.get("PRICE_UPDATER_PRIVATE_KEY")
    if not private_key:
        parser.error("PRICE_UPDATER_PRIVATE_KEY must be set")

    if args.price_update_frequency < 1:
        parser.error("--price-update-frequency must be at least 1 second")

    if args.max_retries < 0:
        parser.error("--max-retries must not be negative")

    if args.retry_delay < 0:
        parser.error("--retry-delay must not be negative")

    try:
        daily_offset = parse_daily_at(args.daily_at)
    except ValueError as e:
        parser.error(f"--daily-at: {e}")

    if args.deployment != "local" and not args.deployments_repo:
        parser.error("--deployments-repo is required for non-local deployments")

    github_access_token = os.environ.get("GITHUB_ACCESS_TOKEN")
    if args.deployment != "local" and not github_access_token:
        parser.error("GITHUB_ACCESS_TOKEN is required for non-local deployments")

    # Log configuration
    logger.info("=" * 60)
    logger.info("Restaking Manager")
    logger.info("=" * 60)
    logger.info(f"Deployment:        {args.deployment}")
    logger.info(f"RPC URL:           {args.rpc_url}")
    logger.info(f"Deployment Path:   {args.deployment_path}")
    logger.info(f"LAT API:           {args.lat_api_url or 'disabled'}")
    logger.info(f"Price Frequency:   {args.price_update_frequency}s")
    logger.info(f"Max Retries:       {args.max_retries}")
    logger.info(f"Retry Delay:       {args.retry_delay}s")
    logger.info(f"Daily At:          {args.daily_at} UTC")
    logger.info("=" * 60)

    try:
        manager = RestakingManager(
            ManagerSettings(
                rpc_url=args.rpc_url,
                private_key=private_key,
                deployment=args.deployment,
                deployment_path=args.deployment_path,
                deployments_repo=args.deployments_repo,
                github_access_token=github_access_token,
                lat_api_url=args.lat_api_url,
                oracle_address=args.oracle_address,
                manager_address=args.manager_address,
                price_update_frequency=args.price_update_frequency,
                max_retries=args.max_retries,
                retry_delay=args.retry_delay,
                daily_offset=daily_offset,
            )
        )
        asyncio.run(manager.run())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
