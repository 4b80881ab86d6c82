"""Failure taxonomy shared by the remote sources, the cache store and the pagers."""

from enum import Enum


class CinemaxError(Exception):
    """Base class for all application errors."""


class NetworkErrorKind(str, Enum):
    OFFLINE = "offline"
    OTHER = "other"


class NetworkError(CinemaxError):
    """The remote source could not be reached."""

    def __init__(self, message: str = "", kind: NetworkErrorKind = NetworkErrorKind.OTHER):
        super().__init__(message or f"network error ({kind.value})")
        self.kind = kind

    @property
    def is_offline(self) -> bool:
        return self.kind is NetworkErrorKind.OFFLINE


class ServerError(CinemaxError):
    """The remote source answered, but not with a usable page."""

    def __init__(self, message: str = "", status_code: int | None = None):
        super().__init__(message or f"server error (status={status_code})")
        self.status_code = status_code


class NotFoundError(CinemaxError):
    """A cursor or cached item is absent. For appends this means end of list."""


class CacheIntegrityError(CinemaxError):
    """Items and cursors of a list went out of step inside a write. Never expected."""
