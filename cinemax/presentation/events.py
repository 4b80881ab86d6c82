"""Intents a screen sends to its view model."""

from pydantic import BaseModel


class Refresh(BaseModel):
    """Pull-to-refresh: reload the list from page 1."""


class Retry(BaseModel):
    """Re-run the load that last failed."""


class ClearError(BaseModel):
    """Dismiss the error, e.g. to keep browsing cached data offline."""


class ChangeQuery(BaseModel):
    query: str


ListEvent = Refresh | Retry | ClearError
SearchEvent = Refresh | Retry | ClearError | ChangeQuery
