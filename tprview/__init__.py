"""Reader for GROMACS run-input (.tpr) files."""

from tprview.errors import (
    MagicMismatchError,
    StateVectorSizeMismatchError,
    TopologyConsistencyError,
    TprError,
    TprIoError,
    UnexpectedEndOfDataError,
    UnsupportedInteractionError,
    UnsupportedVersionError,
)
from tprview.model import (
    Atom,
    Bond,
    Element,
    Endianness,
    Precision,
    SimBox,
    TprFile,
    TprHeader,
    TprTopology,
)
from tprview.services.loader import parse_tpr, read_tpr

__all__ = [
    "Atom",
    "Bond",
    "Element",
    "Endianness",
    "MagicMismatchError",
    "Precision",
    "SimBox",
    "StateVectorSizeMismatchError",
    "TopologyConsistencyError",
    "TprError",
    "TprFile",
    "TprHeader",
    "TprIoError",
    "TprTopology",
    "UnexpectedEndOfDataError",
    "UnsupportedInteractionError",
    "UnsupportedVersionError",
    "parse_tpr",
    "read_tpr",
]
