"""
⚠️ DRAFT — requires crypto review before production use

Custom exceptions for the shielded access protocol.

Protocol errors carry a fixed message per kind so callers can match on the
class or on the rendered text. The scope prefix names the module that raised
the error (``ShieldedAccessControl`` or ``ShieldedOwnable``).
"""

SCOPE_ACCESS_CONTROL = "ShieldedAccessControl"
SCOPE_OWNABLE = "ShieldedOwnable"


class ShieldedAccessError(Exception):
    """Base exception for shielded access errors."""

    pass


class ProtocolError(ShieldedAccessError):
    """
    Failure of a protocol operation.

    Subclasses define ``message`` and may override it per scope in
    ``scoped_messages``; the rendered text is ``"<scope>: <message>"``.
    """

    message = "protocol error"
    scoped_messages: dict = {}

    def __init__(self, scope: str = SCOPE_ACCESS_CONTROL):
        self.scope = scope
        self.message = self.scoped_messages.get(scope, self.message)
        super().__init__(f"{scope}: {self.message}")


class UnsupportedAccountKind(ProtocolError):
    """The account reference is not a plain public-key account."""

    message = "contract address accounts are not yet supported"
    scoped_messages = {
        SCOPE_ACCESS_CONTROL: "contract address roles are not yet supported",
        SCOPE_OWNABLE: "contract address owners are not yet supported",
    }


class InvalidIdentity(ProtocolError):
    """The supplied id is the reserved all-zero value."""

    message = "invalid id"


class UnauthorizedAccount(ProtocolError):
    """A membership or ownership check failed."""

    message = "unauthorized account"
    scoped_messages = {SCOPE_OWNABLE: "caller is not the owner"}


class RoleAccessAlreadyRevoked(ProtocolError):
    """The commitment in question has already been nullified."""

    message = "role access already revoked"


class BadConfirmation(ProtocolError):
    """Self-service call whose confirmation does not match the caller."""

    message = "bad confirmation"


class LedgerError(ShieldedAccessError):
    """Structural violation on a ledger-held collection."""

    pass


class SlotAlreadyOccupied(LedgerError):
    """Tree insert targeted an index that already holds another leaf."""

    pass


class InvalidIndex(LedgerError):
    """Tree index outside the written range (or beyond capacity)."""

    pass


class NullifierAlreadyPresent(LedgerError):
    """Nullifier inserted twice."""

    pass


class ConfigurationError(ShieldedAccessError):
    """Configuration error."""

    pass


class SchemaError(ShieldedAccessError):
    """Raised when an encoded state blob fails schema validation."""

    pass
