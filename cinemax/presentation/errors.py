"""Failure → user-facing message key.

The lookup table lives in settings.error_message_keys, so the rendering side
only ever sees a key and an offline flag.
"""

from pydantic import BaseModel

from cinemax.config import settings
from cinemax.errors import NetworkError, ServerError


class ErrorMessage(BaseModel):
    """Opaque error for the UI: what to say, and whether cached data can be offered instead."""
    model_config = {"frozen": True}

    message_key: str
    is_offline: bool = False


class ErrorClassifier:
    def __init__(self, message_keys: dict[str, str] | None = None):
        self.message_keys = message_keys if message_keys is not None else settings.error_message_keys

    @staticmethod
    def kind_of(error: BaseException) -> str:
        if isinstance(error, NetworkError):
            return "offline" if error.is_offline else "network"
        if isinstance(error, ServerError):
            return "server"
        return "unknown"

    def message_key_for(self, error: BaseException) -> str:
        kind = self.kind_of(error)
        return self.message_keys.get(kind) or self.message_keys.get("unknown", "unknown_error")

    def to_error_message(self, error: BaseException) -> ErrorMessage:
        return ErrorMessage(
            message_key=self.message_key_for(error),
            is_offline=self.kind_of(error) == "offline",
        )


def to_error_message(error: BaseException) -> ErrorMessage:
    """Classify with the configured table."""
    return ErrorClassifier().to_error_message(error)
