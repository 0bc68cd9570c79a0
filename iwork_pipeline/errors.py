"""Exception types raised by the pipeline stages."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class PipelineError(Exception):
    """Base class for pipeline failures."""


class RemoteErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    HTTP = "http"
    TRANSPORT = "transport"
    MALFORMED = "malformed"
    WRITE = "write"


class RemoteError(PipelineError):
    """A Box API call failed.

    ``kind`` separates an invalid or expired access token from every other
    failure so the CLI can point the user at the credential.
    """

    def __init__(
        self,
        message: str,
        kind: RemoteErrorKind = RemoteErrorKind.TRANSPORT,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code

    @property
    def unauthorized(self) -> bool:
        return self.kind is RemoteErrorKind.UNAUTHORIZED


class ConversionError(PipelineError):
    """The external converter failed or produced nothing."""
