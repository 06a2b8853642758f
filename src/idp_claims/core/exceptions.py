"""Error types raised by the claim capture and projection workflows."""


class IdpClaimsError(Exception):
    """Base class for all errors raised by this package."""


class MissingUserIdError(IdpClaimsError):
    """The host event did not identify the authenticated user."""


class SnapshotDecodeError(IdpClaimsError):
    """A stored claims snapshot could not be parsed."""


class PropertyStoreError(IdpClaimsError):
    """A call to the property store failed."""

    def __init__(
        self, message: str, status_code: int | None = None, detail: str | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class PropertyCreationError(PropertyStoreError):
    """The property definition could not be created for a reason other than a race."""


class ManagementApiAuthError(PropertyStoreError):
    """No access token could be obtained for the management API."""
