"""ConfigRegistry: Configured tokens and their source wiring.

Configured tokens are kept in a dense array with an index map from token to
array position. Removal swaps the last entry into the freed slot and
truncates, so iteration order is not stable across removals.
"""

from __future__ import annotations

import logging

from .AccessControl import AuthContext, Role, RoleRegistry
from .errors import ConfigurationError
from .RateStore import RateStore
from .TokenConfig import TokenConfig, normalize_address

logger = logging.getLogger(__name__)


class ConfigRegistry:
    """Owns the configured token set and per-token configuration.

    :ivar configs: Dict mapping token address to its TokenConfig.
    """

    def __init__(self, roles: RoleRegistry, rate_store: RateStore) -> None:
        """Initialize the registry.

        :param roles: Role registry used for configurator checks.
        :param rate_store: Store whose rate records are dropped on removal.
        """
        self.roles = roles
        self.rate_store = rate_store
        self.configs: dict[str, TokenConfig] = {}
        self._tokens: list[str] = []
        self._index: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._tokens)

    def is_configured(self, token: str) -> bool:
        try:
            return normalize_address(token, "token") in self._index
        except ConfigurationError:
            return False

    def tokens(self) -> list[str]:
        """Get configured tokens in current iteration order."""
        return list(self._tokens)

    def get_config(self, token: str) -> TokenConfig | None:
        """Get a token's configuration.

        :param token: Token address.
        :returns: TokenConfig or None if the token is not configured.
        """
        try:
            return self.configs.get(normalize_address(token, "token"))
        except ConfigurationError:
            return None

    def configure_token(
        self,
        ctx: AuthContext,
        token: str,
        primary_type: int,
        primary_source: str,
        needs_arg: bool,
        fallback_source: str,
        fallback_selector: bytes | str,
    ) -> TokenConfig:
        """Create or fully overwrite a token's configuration. Requires CONFIGURATOR.

        :param ctx: Authorization context of the call.
        :param token: Token address.
        :param primary_type: SourceKind value of the primary source.
        :param primary_source: Primary source contract address.
        :param needs_arg: Whether calls by selector take the token as argument.
        :param fallback_source: Fallback contract address (zero for none).
        :param fallback_selector: 4-byte fallback function selector.
        :returns: The stored configuration.
        :raises RoleError: If the caller is not a configurator.
        :raises ConfigurationError: If the wiring is invalid.
        """
        self.roles.require(ctx, Role.CONFIGURATOR)
        config = TokenConfig.from_wiring(
            token, primary_type, primary_source, needs_arg, fallback_source, fallback_selector
        )

        if config.token not in self._index:
            self._index[config.token] = len(self._tokens)
            self._tokens.append(config.token)
            logger.info(
                f"Configured token {config.token} "
                f"(primary={config.primary.kind.name.lower()}, "
                f"fallback={'yes' if config.fallback else 'no'})"
            )
        else:
            logger.info(f"Reconfigured token {config.token}")

        self.configs[config.token] = config
        return config

    def remove_token(self, ctx: AuthContext, token: str) -> None:
        """Remove a configured token and its stored rate. Requires CONFIGURATOR.

        :param ctx: Authorization context of the call.
        :param token: Token address.
        :raises RoleError: If the caller is not a configurator.
        :raises ConfigurationError: If the token is not configured.
        """
        self.roles.require(ctx, Role.CONFIGURATOR)
        token = normalize_address(token, "token")
        if token not in self._index:
            raise ConfigurationError(f"Token {token} is not configured")

        # Swap-with-last and truncate
        position = self._index.pop(token)
        last = self._tokens.pop()
        if last != token:
            self._tokens[position] = last
            self._index[last] = position

        del self.configs[token]
        self.rate_store.clear_rate(token)
        logger.info(f"Removed token {token}")
