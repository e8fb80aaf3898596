"""AccessControl: Named capabilities and explicit authorization contexts.

Every mutating oracle operation receives an :class:`AuthContext` and checks it
against the :class:`RoleRegistry` before touching any state.

.. code-block:: python

    >>> roles = RoleRegistry(admin="0x00000000000000000000000000000000000000aa")
    >>> admin = AuthContext("0x00000000000000000000000000000000000000aa")
    >>> roles.has_role(Role.ADMIN, admin.caller)
    True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from web3 import Web3

from .errors import RoleError

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Capabilities required by mutating operations."""

    ADMIN = "admin"
    CONFIGURATOR = "configurator"
    RATE_UPDATER = "rate_updater"


@dataclass(frozen=True)
class AuthContext:
    """Identity of the caller of a single operation.

    :ivar caller: Address of the account invoking the operation.
    """

    caller: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "caller", Web3.to_checksum_address(self.caller))


class RoleRegistry:
    """Maps roles to the set of accounts holding them.

    :ivar members: Dict mapping each role to its member addresses.
    """

    def __init__(self, admin: str) -> None:
        """Initialize the registry.

        :param admin: Address granted the ADMIN role.
        """
        self.members: dict[Role, set[str]] = {role: set() for role in Role}
        self.members[Role.ADMIN].add(Web3.to_checksum_address(admin))

    def has_role(self, role: Role, account: str) -> bool:
        """Check whether an account holds a role.

        :param role: Role to check.
        :param account: Account address.
        :returns: True if the account holds the role.
        """
        return Web3.to_checksum_address(account) in self.members[role]

    def require(self, ctx: AuthContext, role: Role) -> None:
        """Reject the call unless the caller holds the role.

        :param ctx: Authorization context of the call.
        :param role: Required role.
        :raises RoleError: If the caller lacks the role.
        """
        if ctx.caller not in self.members[role]:
            logger.warning(f"Rejected call from {ctx.caller}: missing {role.value}")
            raise RoleError(ctx.caller, role.value)

    def grant_role(self, ctx: AuthContext, role: Role, account: str) -> None:
        """Grant a role. Requires ADMIN.

        :param ctx: Authorization context of the call.
        :param role: Role to grant.
        :param account: Recipient address.
        """
        self.require(ctx, Role.ADMIN)
        self.members[role].add(Web3.to_checksum_address(account))
        logger.info(f"Granted {role.value} to {account}")

    def revoke_role(self, ctx: AuthContext, role: Role, account: str) -> None:
        """Revoke a role. Requires ADMIN.

        :param ctx: Authorization context of the call.
        :param role: Role to revoke.
        :param account: Address losing the role.
        """
        self.require(ctx, Role.ADMIN)
        self.members[role].discard(Web3.to_checksum_address(account))
        logger.info(f"Revoked {role.value} from {account}")
