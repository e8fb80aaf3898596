"""DeploymentRefresher: Keeps the locally cached deployment data current.

For remote deployments the deployments repository on GitHub holds one
directory per released version, each with an ``info.json``. The version with
the newest ``deploymentTimestamp`` wins and is written to the local deployment
file. Local deployments only re-read the local file.
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"


@dataclass(frozen=True)
class DeploymentData:
    """Contract addresses of one deployment.

    :ivar oracle_address: TokenRegistryOracle proxy address.
    :ivar manager_address: LiquidTokenManager proxy address.
    :ivar liquid_token_address: LiquidToken proxy address.
    :ivar timestamp: Deployment timestamp, 0 if unknown.
    """

    oracle_address: str
    manager_address: str
    liquid_token_address: str
    timestamp: int = 0

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> DeploymentData:
        """Extract addresses from a deployment output document.

        :param data: Parsed deployment JSON.
        :returns: DeploymentData instance.
        :raises ValueError: If required addresses are missing.
        """
        try:
            proxies = data["contractDeployments"]["proxy"]
            return cls(
                oracle_address=proxies["tokenRegistryOracle"]["address"],
                manager_address=proxies["liquidTokenManager"]["address"],
                liquid_token_address=data.get("proxyAddress")
                or proxies["liquidToken"]["address"],
                timestamp=int(data.get("deploymentTimestamp") or 0),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed deployment data: missing {e}") from e


class DeploymentRefresher:
    """Fetches the latest deployment data and caches it on disk.

    :ivar deployment: Deployment name; "local" skips the remote fetch.
    :ivar output_path: Local deployment data file.
    :ivar repo: "owner/repo/path" of the deployments directory on GitHub.
    """

    def __init__(
        self,
        deployment: str,
        output_path: str | Path,
        repo: str | None = None,
        access_token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the refresher.

        :param deployment: Deployment name (e.g., "local", "holesky", "mainnet").
        :param output_path: Path of the local deployment data file.
        :param repo: GitHub "owner/repo/path" of the deployments directory.
        :param access_token: GitHub access token.
        :param client: Optional HTTP client (created per refresh otherwise).
        """
        self.deployment = deployment
        self.output_path = Path(output_path)
        self.repo = repo
        self.access_token = access_token
        self._client = client
        self.current: DeploymentData | None = None

    @property
    def is_local(self) -> bool:
        return not self.deployment or self.deployment == "local"

    def load_local(self) -> DeploymentData:
        """Read the cached deployment file.

        :returns: Deployment data from disk.
        """
        with open(self.output_path, "r") as file:
            return DeploymentData.from_json(json.load(file))

    async def refresh(self) -> DeploymentData:
        """Refresh the cached deployment data.

        :returns: The current deployment data.
        :raises ValueError: If the repository is misconfigured or holds no
            valid deployment.
        :raises httpx.HTTPError: If the GitHub API request fails.
        """
        if self.is_local:
            logger.info("Local deployment: using cached deployment file")
        else:
            data = await self._fetch_latest()
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.output_path, "w") as file:
                json.dump(data, file, indent=2)
            logger.info(
                f"Saved deployment from {data['deploymentTimestamp']} to {self.output_path}"
            )

        deployment = self.load_local()
        if self.current and deployment != self.current:
            logger.info(f"Deployment changed: oracle={deployment.oracle_address}")
        self.current = deployment
        return deployment

    async def _fetch_latest(self) -> dict[str, Any]:
        if not self.repo or not self.access_token:
            raise ValueError("Deployments repo and access token must be set")

        owner, repo, *path_parts = self.repo.split("/")
        if not owner or not repo:
            raise ValueError(f"Invalid deployments repo format: {self.repo}")

        base = f"{GITHUB_API_URL}/repos/{owner}/{repo}/contents/{'/'.join(path_parts)}"
        headers = {
            "Authorization": f"token {self.access_token}",
            "Accept": "application/vnd.github.v3+json",
        }

        client = self._client or httpx.AsyncClient(timeout=httpx.Timeout(30.0, connect=10.0))
        try:
            response = await client.get(base, headers=headers)
            response.raise_for_status()
            directories = [item for item in response.json() if item.get("type") == "dir"]
            if not directories:
                raise ValueError("No deployments found in repo")

            versions: list[tuple[int, dict[str, Any]]] = []
            for directory in directories:
                url = f"{base}/{directory['name']}/info.json"
                try:
                    info = await client.get(url, headers=headers)
                    if not info.is_success:
                        continue
                    content = base64.b64decode(info.json()["content"]).decode("utf-8")
                    data = json.loads(content)
                except (httpx.HTTPError, KeyError, ValueError) as e:
                    logger.warning(f"Skipping {directory['name']}/info.json: {e}")
                    continue
                try:
                    timestamp = int(data.get("deploymentTimestamp") or 0)
                except (AttributeError, TypeError, ValueError):
                    logger.warning(
                        f"Skipping {directory['name']}/info.json: "
                        f"bad deploymentTimestamp {data.get('deploymentTimestamp')!r}"
                    )
                    continue
                if timestamp:
                    versions.append((timestamp, data))
        finally:
            if self._client is None:
                await client.aclose()

        if not versions:
            raise ValueError(f"No valid deployment data found in {self.repo}")
        return max(versions, key=lambda v: v[0])[1]
