"""Errors raised by the disable-state store, cache and gate."""


class DisableTrackingError(Exception):
    """Base class for all errors of this service."""

    def __init__(self, message: str = "Disable tracking error"):
        self.message = message
        super().__init__(self.message)


class StorageError(DisableTrackingError):
    """The disable-state table (or the shared cache) is unreachable or malformed."""

    def __init__(self, message: str = "Disable-state storage unavailable"):
        super().__init__(message)


class InvalidSiteError(DisableTrackingError):
    """An operation referenced a site that does not exist."""

    def __init__(self, site_ids):
        if isinstance(site_ids, int):
            site_ids = [site_ids]
        self.site_ids = sorted(site_ids)
        super().__init__(f"Invalid site ID: {', '.join(str(s) for s in self.site_ids)}")


class AuthorizationError(DisableTrackingError):
    """Caller lacks admin rights for one or more of the referenced sites."""

    def __init__(self, site_ids):
        self.site_ids = sorted(site_ids)
        super().__init__(
            f"Admin access required for site(s): {', '.join(str(s) for s in self.site_ids)}"
        )


class DecodeError(DisableTrackingError):
    """A site identifier token could not be decoded to a site id."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Malformed site identifier: {token!r}")
