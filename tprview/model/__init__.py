"""Model package exports."""

from tprview.model.state import (
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
from tprview.model.templates import (
    AtomTemplate,
    MoleculeBlock,
    MoleculeTypeTemplate,
    ResidueTemplate,
)

__all__ = [
    "Atom",
    "AtomTemplate",
    "Bond",
    "Element",
    "Endianness",
    "MoleculeBlock",
    "MoleculeTypeTemplate",
    "Precision",
    "ResidueTemplate",
    "SimBox",
    "TprFile",
    "TprHeader",
    "TprTopology",
]
