"""
Domain exceptions raised by pairing services.
"""


class PairingError(Exception):
    """Base class for errors raised by the pairing core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgument(PairingError):
    """Malformed input such as a non-integer period length or an out-of-range seed."""


class Forbidden(PairingError):
    """Caller lacks admin rights for the organization."""


class OrganizationNotFound(PairingError):
    """The referenced organization does not exist."""

    def __init__(self, organization_id: int):
        super().__init__(f"Organization {organization_id} not found")
        self.organization_id = organization_id


class PersistenceFailure(PairingError):
    """Writing the period or pairing batch failed; nothing was committed."""
