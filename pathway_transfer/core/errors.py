# pathway_transfer/core/errors.py
"""
Exception types raised by the transfer engine.

Unresolved references are not errors; they are reported through
RemapReport and the logging channel. Only broken payloads and internal
contract violations raise.
"""


class PathwayTransferError(Exception):
    """Base class for all errors raised by the transfer engine."""
    pass


class GpmlFormatError(PathwayTransferError):
    """The interchange text is malformed, truncated or not a supported GPML document."""
    pass


class CorrespondenceError(PathwayTransferError):
    """
    The original/duplicate correspondence is inconsistent.

    This signals a programming error (for example, an anchor whose owning
    line has no duplicate), never a problem with user data.
    """
    pass
