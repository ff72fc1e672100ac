from __future__ import annotations


class LeitorError(Exception):
    """Base class for errors raised while reading NFS-e documents."""


class MalformedDocumentError(LeitorError):
    """The input is not well-formed XML; the whole document is rejected."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source

    def __str__(self) -> str:
        msg = super().__str__()
        if self.source:
            return f"{self.source}: {msg}"
        return msg


class UnsupportedFileError(LeitorError):
    """A path given to the loader is neither .xml nor .zip."""
