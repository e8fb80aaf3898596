"""Exception hierarchy shared by the oracle ledger model and the manager."""


class OracleError(Exception):
    """Base exception for oracle errors."""

    pass


class ConfigurationError(OracleError):
    """Raised when token configuration is invalid or missing."""

    pass


class RoleError(OracleError):
    """Raised when the caller lacks the capability required by an operation.

    :ivar caller: Address that attempted the call.
    :ivar role: Role that was required.
    """

    def __init__(self, caller: str, role: str):
        """Initialize the role error.

        :param caller: Address that attempted the call.
        :param role: Name of the missing role.
        """
        self.caller = caller
        self.role = role
        super().__init__(f"{caller} is missing role {role}")


class LengthMismatch(OracleError):
    """Raised when batch input sequences differ in length."""

    def __init__(self, tokens: int, rates: int):
        """Initialize the length mismatch error.

        :param tokens: Number of tokens supplied.
        :param rates: Number of rates supplied.
        """
        self.tokens = tokens
        self.rates = rates
        super().__init__(f"Length mismatch: {tokens} tokens, {rates} rates")


class ResolutionFailure(OracleError):
    """Primary and fallback sources both failed for one token.

    Recorded (not raised) during a refresh pass; raised by direct price
    queries.

    :ivar token: Token that could not be resolved.
    :ivar reason: Human readable failure summary.
    """

    def __init__(self, token: str, reason: str):
        """Initialize the resolution failure.

        :param token: Token address.
        :param reason: Failure summary.
        """
        self.token = token
        self.reason = reason
        super().__init__(f"Could not resolve price for {token}: {reason}")


class StaleSourceData(OracleError):
    """A feed value was rejected as too old or non-positive."""

    pass


class TransactionFailed(OracleError):
    """Raised when a submitted transaction reverts.

    :ivar tx_hash: Hash of the reverted transaction.
    """

    def __init__(self, tx_hash: str):
        """Initialize the transaction failure.

        :param tx_hash: Hex transaction hash.
        """
        self.tx_hash = tx_hash
        super().__init__(f"Transaction {tx_hash} reverted")
