"""Error types and error payload helpers."""

from __future__ import annotations

from typing import Dict, Optional


class TprError(Exception):
    """Base exception type for tprview.

    Attributes
    ----------
    code
        Stable error identifier.
    message
        Human-readable error message.
    details
        Optional detail payload for debugging.
    """

    code = "tpr_error"

    def __init__(self, message: str, details: Optional[object] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_result(self) -> Dict[str, object]:
        """Return a JSON-ready error payload.

        Returns
        -------
        dict
            JSON-ready error payload.
        """
        return error_result(self.code, self.message, self.details)


class MagicMismatchError(TprError):
    """The buffer does not start with a run-input header."""

    code = "magic_mismatch"


class UnsupportedVersionError(TprError):
    """The file version lies outside the understood layouts.

    Attributes
    ----------
    version
        Offending file version, when known.
    """

    code = "unsupported_version"

    def __init__(
        self, message: str, details: Optional[object] = None, version: Optional[int] = None
    ) -> None:
        super().__init__(message, details)
        self.version = version


class UnsupportedInteractionError(UnsupportedVersionError):
    """An interaction type has no documented record length for this version."""

    code = "unsupported_interaction"


class UnexpectedEndOfDataError(TprError):
    """A read ran past the end of the buffer."""

    code = "unexpected_eof"


class TopologyConsistencyError(TprError):
    """Counts or indices in the topology contradict each other."""

    code = "topology_inconsistent"


class StateVectorSizeMismatchError(TprError):
    """A coordinate array length disagrees with the reconstructed atom count."""

    code = "state_size_mismatch"


class TprIoError(TprError):
    """The file could not be read from disk."""

    code = "io_failed"


def error_result(code: str, message: str, details: Optional[object] = None) -> Dict[str, object]:
    """Build an error payload.

    Parameters
    ----------
    code
        Stable error identifier.
    message
        Human-readable summary.
    details
        Optional detail payload for logging or debugging.

    Returns
    -------
    dict
        JSON-ready error payload.
    """

    return {"ok": False, "error": {"code": code, "message": message, "details": details}}
