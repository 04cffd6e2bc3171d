"""Failure types raised by the GitHub fetcher."""

import math
from typing import Optional


class InvalidRepositoryUrl(ValueError):
    """The repository reference is not a recognisable GitHub repo."""


class FetchError(Exception):
    """Base class for code-hosting API failures."""


class RateLimited(FetchError):
    """The API rate limit is exhausted. Retryable after ``retry_after`` seconds."""

    def __init__(self, retry_after: float) -> None:
        self.retry_after = max(0.0, retry_after)
        minutes = max(1, math.ceil(self.retry_after / 60))
        super().__init__(
            f"GitHub API rate limit exceeded. Please wait ~{minutes} minute(s) "
            "or provide a GitHub Personal Access Token to increase the limit."
        )


class NotFound(FetchError):
    def __init__(self, resource: str) -> None:
        self.resource = resource
        super().__init__(
            f"Resource not found (404). The repository or file at {resource} "
            "may be private or may not exist."
        )


class RequestFailed(FetchError):
    """Any other HTTP or transport failure. ``status`` is None for transport errors."""

    def __init__(self, status: Optional[int], url: str, detail: str = "") -> None:
        self.status = status
        self.url = url
        if status is None:
            msg = f"GitHub API request failed for {url}: {detail or 'transport error'}"
        else:
            msg = f"GitHub API request failed for {url} with status {status}."
        super().__init__(msg)


class DecodeFailed(FetchError):
    """File content was returned in an unusable form."""

    def __init__(self, path: str, encoding: Optional[str]) -> None:
        self.path = path
        self.encoding = encoding
        super().__init__(
            f"Failed to retrieve content for {path}. Encoding: {encoding or 'N/A'}"
        )
