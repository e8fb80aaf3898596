"""Shared fixtures for oracle tests."""

import pytest

from token_oracle.src.AccessControl import AuthContext, Role
from token_oracle.src.TokenRegistryOracle import TokenRegistryOracle
from token_oracle.tests.fakes import (
    ADMIN,
    CONFIGURATOR,
    STRANGER,
    UPDATER,
    FakeSourceReader,
)


@pytest.fixture
def reader() -> FakeSourceReader:
    return FakeSourceReader()


@pytest.fixture
def admin() -> AuthContext:
    return AuthContext(ADMIN)


@pytest.fixture
def configurator() -> AuthContext:
    return AuthContext(CONFIGURATOR)


@pytest.fixture
def updater() -> AuthContext:
    return AuthContext(UPDATER)


@pytest.fixture
def stranger() -> AuthContext:
    return AuthContext(STRANGER)


@pytest.fixture
def oracle(reader, admin) -> TokenRegistryOracle:
    """Oracle with a configurator and a rate updater already granted."""
    oracle = TokenRegistryOracle(admin=ADMIN, reader=reader)
    oracle.grant_role(admin, Role.CONFIGURATOR, CONFIGURATOR)
    oracle.grant_role(admin, Role.RATE_UPDATER, UPDATER)
    return oracle
