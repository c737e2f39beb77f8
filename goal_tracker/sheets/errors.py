from __future__ import annotations


class SheetsSyncError(Exception):
    kind = "sync"


class TransportError(SheetsSyncError):
    """The endpoint could not be reached."""

    kind = "transport"


class ProtocolError(SheetsSyncError):
    """Non-success status or a body that does not match the row contract."""

    kind = "protocol"


class ParseError(SheetsSyncError):
    kind = "parse"


class ConfigurationError(SheetsSyncError):
    """The endpoint answered with a document instead of data.

    Usually a sign-in page: the script is not public or the URL is wrong.
    Retrying will not help.
    """

    kind = "configuration"
