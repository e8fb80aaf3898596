"""
Token Rate Oracle - Price Freshness Module

This module keeps token exchange rates fresh for a liquid restaking token:
- TokenRegistryOracle: Ledger facade with role-gated, atomic operations
- ConfigRegistry: Configured tokens and their source wiring
- PriceResolver: Primary/fallback resolution with 18-decimal normalization
- RateStore: Rates and global staleness
- RefreshCoordinator: Partial-failure-tolerant refresh and manual overrides
- UpdateScheduler: Price and daily job streams with bounded retry
- RestakingManager: Off-chain orchestrator driving the on-chain oracle
"""

from .AccessControl import AuthContext, Role, RoleRegistry
from .ConfigRegistry import ConfigRegistry
from .errors import (
    ConfigurationError,
    LengthMismatch,
    OracleError,
    ResolutionFailure,
    RoleError,
    StaleSourceData,
    TransactionFailed,
)
from .PriceResolver import PriceResolver, Resolution
from .RateStore import STALENESS_PERIOD, RateStore
from .RefreshCoordinator import RefreshCoordinator, RefreshResult
from .RestakingManager import ManagerSettings, RestakingManager
from .TokenConfig import PRECISION, SourceKind, TokenConfig
from .TokenRegistryOracle import TokenRegistryOracle
from .UpdateScheduler import JobState, UpdateScheduler

__all__ = [
    "AuthContext",
    "ConfigRegistry",
    "ConfigurationError",
    "JobState",
    "LengthMismatch",
    "ManagerSettings",
    "OracleError",
    "PRECISION",
    "PriceResolver",
    "RateStore",
    "RefreshCoordinator",
    "RefreshResult",
    "Resolution",
    "ResolutionFailure",
    "RestakingManager",
    "Role",
    "RoleError",
    "RoleRegistry",
    "STALENESS_PERIOD",
    "SourceKind",
    "StaleSourceData",
    "TokenConfig",
    "TokenRegistryOracle",
    "TransactionFailed",
    "UpdateScheduler",
]
