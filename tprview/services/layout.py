"""Version-dependent layout of run-input files.

Every difference between file versions is resolved here. Decoders ask
:func:`resolve_layout` once and read the descriptor fields instead of comparing
version numbers themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Tuple

from tprview.config import (
    DIM,
    MAX_TPR_VERSION,
    MIN_TPR_VERSION,
    NR_CBTDIHS,
    NR_RBDIHS,
)
from tprview.errors import UnsupportedInteractionError, UnsupportedVersionError
from tprview.services.xdr import TprReader


class InteractionType(IntEnum):
    """Interaction (function) types in their current numbering."""

    F_BONDS = 0
    F_G96BONDS = 1
    F_MORSE = 2
    F_CUBICBONDS = 3
    F_CONNBONDS = 4
    F_HARMONIC = 5
    F_FENEBONDS = 6
    F_TABBONDS = 7
    F_TABBONDSNC = 8
    F_RESTRBONDS = 9
    F_ANGLES = 10
    F_G96ANGLES = 11
    F_RESTRANGLES = 12
    F_LINEAR_ANGLES = 13
    F_CROSS_BOND_BONDS = 14
    F_CROSS_BOND_ANGLES = 15
    F_UREY_BRADLEY = 16
    F_QUARTIC_ANGLES = 17
    F_TABANGLES = 18
    F_PDIHS = 19
    F_RBDIHS = 20
    F_RESTRDIHS = 21
    F_CBTDIHS = 22
    F_FOURDIHS = 23
    F_IDIHS = 24
    F_PIDIHS = 25
    F_TABDIHS = 26
    F_CMAP = 27
    F_GB12_NOLONGERUSED = 28
    F_GB13_NOLONGERUSED = 29
    F_GB14_NOLONGERUSED = 30
    F_GBPOL_NOLONGERUSED = 31
    F_NPSOLVATION_NOLONGERUSED = 32
    F_LJ14 = 33
    F_COUL14 = 34
    F_LJC14_Q = 35
    F_LJC_PAIRS_NB = 36
    F_LJ = 37
    F_BHAM = 38
    F_LJ_LR_NOLONGERUSED = 39
    F_BHAM_LR_NOLONGERUSED = 40
    F_DISPCORR = 41
    F_COUL_SR = 42
    F_COUL_LR_NOLONGERUSED = 43
    F_RF_EXCL = 44
    F_COUL_RECIP = 45
    F_LJ_RECIP = 46
    F_DPD = 47
    F_POLARIZATION = 48
    F_WATER_POL = 49
    F_THOLE_POL = 50
    F_ANHARM_POL = 51
    F_POSRES = 52
    F_FBPOSRES = 53
    F_DISRES = 54
    F_DISRESVIOL = 55
    F_ORIRES = 56
    F_ORIRESDEV = 57
    F_ANGRES = 58
    F_ANGRESZ = 59
    F_DIHRES = 60
    F_DIHRESVIOL = 61
    F_CONSTR = 62
    F_CONSTRNC = 63
    F_SETTLE = 64
    F_VSITE1 = 65
    F_VSITE2 = 66
    F_VSITE2FD = 67
    F_VSITE3 = 68
    F_VSITE3FD = 69
    F_VSITE3FAD = 70
    F_VSITE3OUT = 71
    F_VSITE4FD = 72
    F_VSITE4FDN = 73
    F_VSITEN = 74
    F_COM_PULL = 75
    F_DENSITYFITTING = 76
    F_EQM = 77
    F_ENNPOT = 78
    F_EPOT = 79
    F_EKIN = 80
    F_ETOT = 81
    F_ECONSERVED = 82
    F_TEMP = 83
    F_VTEMP_NOLONGERUSED = 84
    F_PDISPCORR = 85
    F_PRES = 86
    F_DVDL_CONSTR = 87
    F_DVDL = 88
    F_DKDL = 89
    F_DVDL_COUL = 90
    F_DVDL_VDW = 91
    F_DVDL_BONDED = 92
    F_DVDL_RESTRAINT = 93
    F_DVDL_TEMPERATURE = 94


IT = InteractionType

# File version in which each interaction type first appears (among supported versions).
INTRODUCED_IN: Mapping[InteractionType, int] = MappingProxyType(
    {
        IT.F_DENSITYFITTING: 117,
        IT.F_VSITE2FD: 118,
        IT.F_VSITE1: 121,
        IT.F_ENNPOT: 137,
    }
)

BOND_TYPES = frozenset(
    {
        IT.F_BONDS,
        IT.F_G96BONDS,
        IT.F_MORSE,
        IT.F_CUBICBONDS,
        IT.F_CONNBONDS,
        IT.F_HARMONIC,
        IT.F_FENEBONDS,
        IT.F_TABBONDS,
        IT.F_TABBONDSNC,
        IT.F_RESTRBONDS,
    }
)
CONSTRAINT_TYPES = frozenset({IT.F_CONSTR, IT.F_CONSTRNC})
SETTLE_TYPE = IT.F_SETTLE


def _group(types: Iterable[InteractionType], value: int) -> Dict[InteractionType, int]:
    return {ftype: value for ftype in types}


# Number of atoms per interaction record; absent types carry no atoms.
_ATOM_COUNTS: Dict[InteractionType, int] = {
    **_group((IT.F_POSRES, IT.F_FBPOSRES), 1),
    **_group(
        (
            IT.F_BONDS,
            IT.F_G96BONDS,
            IT.F_MORSE,
            IT.F_CUBICBONDS,
            IT.F_CONNBONDS,
            IT.F_HARMONIC,
            IT.F_FENEBONDS,
            IT.F_TABBONDS,
            IT.F_TABBONDSNC,
            IT.F_RESTRBONDS,
            IT.F_GB12_NOLONGERUSED,
            IT.F_GB13_NOLONGERUSED,
            IT.F_GB14_NOLONGERUSED,
            IT.F_LJ14,
            IT.F_LJC14_Q,
            IT.F_LJC_PAIRS_NB,
            IT.F_LJ,
            IT.F_BHAM,
            IT.F_POLARIZATION,
            IT.F_ANHARM_POL,
            IT.F_DISRES,
            IT.F_ORIRES,
            IT.F_ANGRESZ,
            IT.F_CONSTR,
            IT.F_CONSTRNC,
            IT.F_VSITE1,
            IT.F_VSITEN,
        ),
        2,
    ),
    **_group(
        (
            IT.F_ANGLES,
            IT.F_G96ANGLES,
            IT.F_RESTRANGLES,
            IT.F_LINEAR_ANGLES,
            IT.F_CROSS_BOND_BONDS,
            IT.F_CROSS_BOND_ANGLES,
            IT.F_UREY_BRADLEY,
            IT.F_QUARTIC_ANGLES,
            IT.F_TABANGLES,
            IT.F_SETTLE,
            IT.F_VSITE2,
            IT.F_VSITE2FD,
        ),
        3,
    ),
    **_group(
        (
            IT.F_PDIHS,
            IT.F_RBDIHS,
            IT.F_RESTRDIHS,
            IT.F_CBTDIHS,
            IT.F_FOURDIHS,
            IT.F_IDIHS,
            IT.F_PIDIHS,
            IT.F_TABDIHS,
            IT.F_THOLE_POL,
            IT.F_ANGRES,
            IT.F_DIHRES,
            IT.F_VSITE3,
            IT.F_VSITE3FD,
            IT.F_VSITE3FAD,
            IT.F_VSITE3OUT,
        ),
        4,
    ),
    **_group((IT.F_CMAP, IT.F_WATER_POL, IT.F_VSITE4FD, IT.F_VSITE4FDN), 5),
}


def atoms_per_interaction(ftype: InteractionType) -> int:
    """Return the number of atoms in one record of ``ftype``."""
    return _ATOM_COUNTS.get(ftype, 0)


@dataclass(frozen=True)
class ParameterRecord:
    """Shape of one force-field parameter record.

    Attributes
    ----------
    n_reals
        Number of reals (stored at file precision).
    n_ints
        Number of 4-byte integers.
    """

    n_reals: int
    n_ints: int = 0

    def byte_length(self, real_size: int) -> int:
        return self.n_reals * real_size + self.n_ints * 4


# Versions at which layouts change.
_IMPLICIT_SOLVENT_REMOVED = 113
_IN_MEMORY_BODY = 119
_EXCLUSION_GROUP = 120
_THOLE_RFAC_REMOVED = 127
_ATOMTYPES_REMOVED = 128
_EXTENDED_RESTRICTED = 134


def _parameter_records(version: int) -> Dict[InteractionType, ParameterRecord]:
    extended = version >= _EXTENDED_RESTRICTED
    table: Dict[InteractionType, ParameterRecord] = {}

    def put(types: Iterable[InteractionType], n_reals: int, n_ints: int = 0) -> None:
        for ftype in types:
            table[ftype] = ParameterRecord(n_reals, n_ints)

    put((IT.F_ANGLES, IT.F_G96ANGLES, IT.F_BONDS, IT.F_G96BONDS, IT.F_HARMONIC, IT.F_IDIHS), 4)
    put((IT.F_RESTRANGLES,), 4 if extended else 2)
    put((IT.F_LINEAR_ANGLES,), 4)
    put((IT.F_FENEBONDS,), 2)
    put((IT.F_RESTRBONDS,), 8)
    put((IT.F_TABBONDS, IT.F_TABBONDSNC, IT.F_TABANGLES, IT.F_TABDIHS), 2, 1)
    put((IT.F_CROSS_BOND_BONDS,), 3)
    put((IT.F_CROSS_BOND_ANGLES,), 4)
    put((IT.F_UREY_BRADLEY,), 8)
    put((IT.F_QUARTIC_ANGLES,), 6)
    put((IT.F_BHAM,), 3)
    put((IT.F_MORSE,), 6)
    put((IT.F_CUBICBONDS,), 3)
    put((IT.F_CONNBONDS,), 0)
    put((IT.F_POLARIZATION,), 1)
    put((IT.F_ANHARM_POL,), 3)
    put((IT.F_WATER_POL,), 6)
    put((IT.F_THOLE_POL,), 4 if version < _THOLE_RFAC_REMOVED else 3)
    put((IT.F_LJ,), 2)
    put((IT.F_LJ14,), 4)
    put((IT.F_LJC14_Q,), 5)
    put((IT.F_LJC_PAIRS_NB,), 4)
    put((IT.F_PDIHS, IT.F_PIDIHS, IT.F_ANGRES, IT.F_ANGRESZ), 4, 1)
    put((IT.F_RESTRDIHS,), 4 if extended else 2)
    put((IT.F_DISRES,), 4, 2)
    put((IT.F_ORIRES,), 3, 3)
    put((IT.F_DIHRES,), 6)
    put((IT.F_POSRES,), 4 * DIM)
    put((IT.F_FBPOSRES,), 2 + DIM, 1)
    put((IT.F_CBTDIHS,), NR_CBTDIHS * (2 if extended else 1))
    put((IT.F_RBDIHS, IT.F_FOURDIHS), 2 * NR_RBDIHS)
    put((IT.F_CONSTR, IT.F_CONSTRNC), 2)
    put((IT.F_SETTLE,), 2)
    put((IT.F_VSITE1,), 0)
    put((IT.F_VSITE2, IT.F_VSITE2FD), 1)
    put((IT.F_VSITE3, IT.F_VSITE3FD, IT.F_VSITE3FAD), 2)
    put((IT.F_VSITE3OUT, IT.F_VSITE4FD, IT.F_VSITE4FDN), 3)
    put((IT.F_VSITEN,), 1, 1)
    put(
        (IT.F_GB12_NOLONGERUSED, IT.F_GB13_NOLONGERUSED, IT.F_GB14_NOLONGERUSED),
        5 if version < _IMPLICIT_SOLVENT_REMOVED else 0,
    )
    put((IT.F_CMAP,), 0, 2)
    return table


@dataclass(frozen=True)
class TprLayout:
    """Field layout shared by a range of file versions.

    Attributes
    ----------
    first_version
        First file version using this layout.
    last_version
        Last file version using this layout.
    in_memory_body
        Body uses compact widths and 8-byte string lengths.
    has_atomtypes_block
        Topology carries the legacy atom-type block.
    has_atomtype_radii
        Legacy atom-type block carries implicit-solvent radii.
    has_exclusion_group
        Topology ends with the intermolecular exclusion group.
    interaction_types
        Interaction types present in the file, in file numbering order.
    parameter_records
        Parameter record shape for each interaction type with a documented length.
    """

    first_version: int
    last_version: int
    in_memory_body: bool
    has_atomtypes_block: bool
    has_atomtype_radii: bool
    has_exclusion_group: bool
    interaction_types: Tuple[InteractionType, ...]
    parameter_records: Mapping[InteractionType, ParameterRecord]

    @property
    def has_body_size(self) -> bool:
        return self.in_memory_body

    @property
    def ushort_size(self) -> int:
        return 2 if self.in_memory_body else 4

    @property
    def uchar_size(self) -> int:
        return 1 if self.in_memory_body else 4

    @property
    def bool_size(self) -> int:
        return 1 if self.in_memory_body else 4

    def covers(self, version: int) -> bool:
        return self.first_version <= version <= self.last_version

    def read_string(self, reader: TprReader) -> str:
        """Read a body string in this layout's encoding."""
        if self.in_memory_body:
            return reader.read_sized_string()
        return reader.read_xdr_string()

    def interaction_type(self, file_number: int) -> InteractionType:
        """Map a function type number stored in the file to an interaction type.

        Raises
        ------
        UnsupportedInteractionError
            If the number is outside the types known for this layout.
        """
        if 0 <= file_number < len(self.interaction_types):
            return self.interaction_types[file_number]
        raise UnsupportedInteractionError(
            f"Unknown function type {file_number} for file versions "
            f"{self.first_version}-{self.last_version}",
            {"function_type": file_number},
        )

    def parameter_length(self, ftype: InteractionType, real_size: int) -> int:
        """Return the byte length of one parameter record of ``ftype``.

        Raises
        ------
        UnsupportedInteractionError
            If no record length is documented for ``ftype`` in this layout.
        """
        record = self.parameter_records.get(ftype)
        if record is None:
            raise UnsupportedInteractionError(
                f"No parameter layout for {ftype.name} in file versions "
                f"{self.first_version}-{self.last_version}",
                {"function_type": ftype.name},
            )
        return record.byte_length(real_size)


def _build_layout(first_version: int, last_version: int) -> TprLayout:
    present = tuple(
        ftype
        for ftype in InteractionType
        if INTRODUCED_IN.get(ftype, MIN_TPR_VERSION) <= first_version
    )
    records = {
        ftype: record
        for ftype, record in _parameter_records(first_version).items()
        if ftype in present
    }
    return TprLayout(
        first_version=first_version,
        last_version=last_version,
        in_memory_body=first_version >= _IN_MEMORY_BODY,
        has_atomtypes_block=first_version < _ATOMTYPES_REMOVED,
        has_atomtype_radii=first_version < _IMPLICIT_SOLVENT_REMOVED,
        has_exclusion_group=first_version >= _EXCLUSION_GROUP,
        interaction_types=present,
        parameter_records=MappingProxyType(records),
    )


_LAYOUT_STARTS = sorted(
    {
        MIN_TPR_VERSION,
        _IMPLICIT_SOLVENT_REMOVED,
        _IN_MEMORY_BODY,
        _EXCLUSION_GROUP,
        _THOLE_RFAC_REMOVED,
        _ATOMTYPES_REMOVED,
        _EXTENDED_RESTRICTED,
        *INTRODUCED_IN.values(),
    }
)

LAYOUTS: Tuple[TprLayout, ...] = tuple(
    _build_layout(start, end - 1)
    for start, end in zip(_LAYOUT_STARTS, _LAYOUT_STARTS[1:] + [MAX_TPR_VERSION + 1])
)


def check_version(version: int) -> None:
    """Raise unless ``version`` is inside the supported range.

    Raises
    ------
    UnsupportedVersionError
        If ``version`` is older or newer than the handled layouts.
    """
    if version < MIN_TPR_VERSION or version > MAX_TPR_VERSION:
        raise UnsupportedVersionError(
            f"Unsupported run-input file version {version} "
            f"(supported: {MIN_TPR_VERSION}-{MAX_TPR_VERSION})",
            {"version": version},
            version=version,
        )


def resolve_layout(version: int) -> TprLayout:
    """Return the layout descriptor for a file version.

    Parameters
    ----------
    version
        File version read from the header.

    Returns
    -------
    TprLayout
        Layout covering ``version``.

    Raises
    ------
    UnsupportedVersionError
        If ``version`` is outside the supported range.
    """

    check_version(version)
    for layout in LAYOUTS:
        if layout.covers(version):
            return layout
    raise UnsupportedVersionError(
        f"No layout registered for file version {version}", version=version
    )
