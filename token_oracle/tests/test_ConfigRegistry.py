"""Unit tests for ConfigRegistry."""

import pytest

from token_oracle.src.AccessControl import AuthContext, Role, RoleRegistry
from token_oracle.src.ConfigRegistry import ConfigRegistry
from token_oracle.src.errors import ConfigurationError, RoleError
from token_oracle.src.RateStore import RateStore
from token_oracle.src.TokenConfig import SourceKind
from token_oracle.tests.fakes import (
    ADMIN,
    CONFIGURATOR,
    FEED_A,
    POOL_B,
    SELECTOR,
    STRANGER,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
    ZERO,
)


@pytest.fixture
def registry() -> ConfigRegistry:
    roles = RoleRegistry(ADMIN)
    roles.grant_role(AuthContext(ADMIN), Role.CONFIGURATOR, CONFIGURATOR)
    return ConfigRegistry(roles, RateStore(roles))


def configure(registry: ConfigRegistry, token: str, source: str = FEED_A) -> None:
    registry.configure_token(
        AuthContext(CONFIGURATOR), token, SourceKind.FEED_AGGREGATOR, source, False, ZERO, SELECTOR
    )


class TestConfigureToken:
    """Test token configuration."""

    def test_configure_new_token(self, registry) -> None:
        configure(registry, TOKEN_A)

        assert len(registry) == 1
        assert registry.is_configured(TOKEN_A)
        assert registry.is_configured(TOKEN_A.lower())
        assert registry.tokens() == [TOKEN_A]

    def test_reconfigure_overwrites_without_duplicating(self, registry) -> None:
        """Reconfiguring should replace the wiring and keep one entry."""
        configure(registry, TOKEN_A, FEED_A)
        registry.configure_token(
            AuthContext(CONFIGURATOR), TOKEN_A, SourceKind.POOL_DERIVED, POOL_B, False, ZERO, SELECTOR
        )

        assert registry.tokens() == [TOKEN_A]
        assert registry.get_config(TOKEN_A).primary.address == POOL_B

    def test_requires_configurator(self, registry) -> None:
        """Role is checked before the wiring is even looked at."""
        with pytest.raises(RoleError):
            registry.configure_token(AuthContext(STRANGER), "garbage", 99, "", False, "", b"")
        assert len(registry) == 0

    def test_invalid_wiring_rejected(self, registry) -> None:
        with pytest.raises(ConfigurationError):
            registry.configure_token(
                AuthContext(CONFIGURATOR), TOKEN_A, 7, FEED_A, False, ZERO, SELECTOR
            )
        assert not registry.is_configured(TOKEN_A)

    def test_tokens_returns_copy(self, registry) -> None:
        configure(registry, TOKEN_A)
        registry.tokens().append(TOKEN_B)
        assert registry.tokens() == [TOKEN_A]


class TestLookup:
    """Test read paths."""

    def test_unknown_and_invalid_tokens(self, registry) -> None:
        assert registry.get_config(TOKEN_A) is None
        assert registry.get_config("not-an-address") is None
        assert not registry.is_configured("not-an-address")


class TestRemoveToken:
    """Test swap-remove semantics."""

    def test_remove_unconfigured_token(self, registry) -> None:
        with pytest.raises(ConfigurationError, match="not configured"):
            registry.remove_token(AuthContext(CONFIGURATOR), TOKEN_A)

    def test_remove_requires_configurator(self, registry) -> None:
        configure(registry, TOKEN_A)
        with pytest.raises(RoleError):
            registry.remove_token(AuthContext(STRANGER), TOKEN_A)
        assert registry.is_configured(TOKEN_A)

    def test_remove_swaps_last_into_slot(self, registry) -> None:
        """Removing a middle token moves the last token into its position."""
        for token in (TOKEN_A, TOKEN_B, TOKEN_C):
            configure(registry, token)

        registry.remove_token(AuthContext(CONFIGURATOR), TOKEN_A)

        assert registry.tokens() == [TOKEN_C, TOKEN_B]
        assert registry._index == {TOKEN_C: 0, TOKEN_B: 1}
        assert registry.get_config(TOKEN_A) is None

    def test_remove_last_token(self, registry) -> None:
        for token in (TOKEN_A, TOKEN_B):
            configure(registry, token)

        registry.remove_token(AuthContext(CONFIGURATOR), TOKEN_B)

        assert registry.tokens() == [TOKEN_A]
        assert registry._index == {TOKEN_A: 0}

    def test_remove_clears_rate(self, registry) -> None:
        configure(registry, TOKEN_A)
        registry.rate_store.set_rate(TOKEN_A, 10**18)

        registry.remove_token(AuthContext(CONFIGURATOR), TOKEN_A)

        assert registry.rate_store.get_rate(TOKEN_A) == 0

    def test_readd_after_remove(self, registry) -> None:
        configure(registry, TOKEN_A)
        configure(registry, TOKEN_B)
        registry.remove_token(AuthContext(CONFIGURATOR), TOKEN_A)
        configure(registry, TOKEN_A)

        assert registry.tokens() == [TOKEN_B, TOKEN_A]
        assert registry._index == {TOKEN_B: 0, TOKEN_A: 1}
