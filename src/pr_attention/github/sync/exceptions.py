"""Sync orchestration exceptions."""


class SyncError(Exception):
    """Base exception for sync orchestration errors."""

    pass


class IdentityResolutionError(SyncError):
    """Raised when no credential can be found for the acting identity."""

    pass


class AmbiguousIdentityError(IdentityResolutionError):
    """Raised when several stored identities exist and none was chosen."""

    def __init__(self, logins: list[str]) -> None:
        super().__init__(
            f"Multiple GitHub identities found ({', '.join(logins)}). "
            "Use --login <github-login>."
        )
        self.logins = logins
