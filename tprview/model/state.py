"""Dataclasses describing a decoded run-input file."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

Vec3 = Tuple[float, float, float]
Matrix3 = Tuple[Vec3, Vec3, Vec3]


class Precision(Enum):
    """Width of the floating point fields stored in the file."""

    SINGLE = 4
    DOUBLE = 8

    @property
    def size(self) -> int:
        return self.value


class Endianness(Enum):
    """Byte order of the file, as a ``struct``/numpy prefix."""

    BIG = ">"
    LITTLE = "<"

    @property
    def prefix(self) -> str:
        return self.value


@dataclass(frozen=True)
class Element:
    """Chemical element descriptor.

    Attributes
    ----------
    atomic_number
        Atomic number.
    symbol
        Element symbol, e.g. ``"Na"``.
    name
        Capitalized element name, e.g. ``"Sodium"``.
    """

    atomic_number: int
    symbol: str
    name: str

    def to_dict(self) -> Dict[str, object]:
        return {"atomic_number": self.atomic_number, "symbol": self.symbol, "name": self.name}


@dataclass(frozen=True)
class TprHeader:
    """File header of a run-input file.

    Attributes
    ----------
    version_string
        Version string of the program that wrote the file.
    precision
        Precision of the stored reals.
    endianness
        Byte order of the file.
    tpr_version
        Layout version of the file.
    tpr_generation
        File generation.
    file_tag
        Release tag of the writer.
    n_atoms
        Declared number of atoms in the system.
    n_coupling_groups
        Number of temperature coupling groups.
    fep_state
        Alchemical state index.
    lambda_value
        Alchemical lambda.
    has_input_record
        Whether simulation parameters are stored.
    has_topology
        Whether the topology is stored.
    has_positions
        Whether positions are stored.
    has_velocities
        Whether velocities are stored.
    has_forces
        Whether forces are stored.
    has_box
        Whether the simulation box is stored.
    body_size
        Size of the file body, for files that record it.
    """

    version_string: str
    precision: Precision
    endianness: Endianness
    tpr_version: int
    tpr_generation: int
    file_tag: str
    n_atoms: int
    n_coupling_groups: int
    fep_state: int
    lambda_value: float
    has_input_record: bool
    has_topology: bool
    has_positions: bool
    has_velocities: bool
    has_forces: bool
    has_box: bool
    body_size: Optional[int] = None

    def to_dict(self) -> Dict[str, object]:
        """Serialize the header.

        Returns
        -------
        dict
            JSON-ready header fields.
        """
        return {
            "version_string": self.version_string,
            "precision": self.precision.name.lower(),
            "endianness": self.endianness.name.lower(),
            "tpr_version": self.tpr_version,
            "tpr_generation": self.tpr_generation,
            "file_tag": self.file_tag,
            "n_atoms": self.n_atoms,
            "n_coupling_groups": self.n_coupling_groups,
            "fep_state": self.fep_state,
            "lambda": self.lambda_value,
            "has_input_record": self.has_input_record,
            "has_topology": self.has_topology,
            "has_positions": self.has_positions,
            "has_velocities": self.has_velocities,
            "has_forces": self.has_forces,
            "has_box": self.has_box,
            "body_size": self.body_size,
        }


@dataclass(frozen=True)
class SimBox:
    """Simulation box matrices.

    Attributes
    ----------
    vectors
        Box vectors, one row per vector.
    relative
        Relative box used for pressure coupling.
    velocity
        Box velocities.
    """

    vectors: Matrix3
    relative: Matrix3
    velocity: Matrix3

    def as_array(self) -> np.ndarray:
        """Return the box vectors as a (3, 3) array."""
        return np.asarray(self.vectors, dtype=np.float64)

    def to_dict(self) -> Dict[str, object]:
        return {
            "vectors": [list(row) for row in self.vectors],
            "relative": [list(row) for row in self.relative],
            "velocity": [list(row) for row in self.velocity],
        }


@dataclass(frozen=True)
class Atom:
    """Atom of the flattened system topology.

    Attributes
    ----------
    atom_name
        Atom name.
    atom_number
        1-based sequential atom number.
    residue_name
        Residue name.
    residue_number
        1-based sequential residue number.
    mass
        Atomic mass.
    charge
        Partial charge.
    atomic_number
        Atomic number, when the file records a positive one.
    element
        Resolved element, when the atomic number is known.
    position
        Position, when stored in the file.
    velocity
        Velocity, when stored in the file.
    force
        Force, when stored in the file.
    """

    atom_name: str
    atom_number: int
    residue_name: str
    residue_number: int
    mass: float
    charge: float
    atomic_number: Optional[int] = None
    element: Optional[Element] = None
    position: Optional[Vec3] = None
    velocity: Optional[Vec3] = None
    force: Optional[Vec3] = None

    def to_dict(self) -> Dict[str, object]:
        """Serialize the atom.

        Returns
        -------
        dict
            JSON-ready atom fields; absent vectors serialize as ``None``.
        """
        return {
            "atom_name": self.atom_name,
            "atom_number": self.atom_number,
            "residue_name": self.residue_name,
            "residue_number": self.residue_number,
            "mass": self.mass,
            "charge": self.charge,
            "atomic_number": self.atomic_number,
            "element": self.element.to_dict() if self.element else None,
            "position": list(self.position) if self.position else None,
            "velocity": list(self.velocity) if self.velocity else None,
            "force": list(self.force) if self.force else None,
        }


@dataclass(frozen=True)
class Bond:
    """Bond between two atoms, by 1-based atom number.

    Attributes
    ----------
    atom1
        Atom number of the first atom.
    atom2
        Atom number of the second atom.
    """

    atom1: int
    atom2: int

    def as_tuple(self) -> Tuple[int, int]:
        return (self.atom1, self.atom2)

    def to_dict(self) -> Dict[str, object]:
        return {"atom1": self.atom1, "atom2": self.atom2}


@dataclass(frozen=True)
class TprTopology:
    """Flattened system topology.

    Attributes
    ----------
    atoms
        Atoms in molecule-instantiation order.
    bonds
        Intramolecular bonds in instantiation order, followed by intermolecular bonds.
    n_molecule_types
        Number of molecule types declared in the file.
    n_molecule_blocks
        Number of molecule blocks declared in the file.
    n_intermolecular_bonds
        Length of the intermolecular suffix of ``bonds``.
    """

    atoms: Tuple[Atom, ...]
    bonds: Tuple[Bond, ...]
    n_molecule_types: int = 0
    n_molecule_blocks: int = 0
    n_intermolecular_bonds: int = 0

    @property
    def n_atoms(self) -> int:
        return len(self.atoms)

    @property
    def intermolecular_bonds(self) -> Tuple[Bond, ...]:
        if not self.n_intermolecular_bonds:
            return ()
        return self.bonds[len(self.bonds) - self.n_intermolecular_bonds :]

    def positions_array(self) -> Optional[np.ndarray]:
        """Return positions as an (N, 3) array, or None when absent."""
        return _vector_array([atom.position for atom in self.atoms])

    def velocities_array(self) -> Optional[np.ndarray]:
        """Return velocities as an (N, 3) array, or None when absent."""
        return _vector_array([atom.velocity for atom in self.atoms])

    def forces_array(self) -> Optional[np.ndarray]:
        """Return forces as an (N, 3) array, or None when absent."""
        return _vector_array([atom.force for atom in self.atoms])

    def to_dict(self) -> Dict[str, object]:
        return {
            "atoms": [atom.to_dict() for atom in self.atoms],
            "bonds": [bond.to_dict() for bond in self.bonds],
            "n_molecule_types": self.n_molecule_types,
            "n_molecule_blocks": self.n_molecule_blocks,
            "n_intermolecular_bonds": self.n_intermolecular_bonds,
        }


@dataclass(frozen=True)
class TprFile:
    """Decoded run-input file.

    Attributes
    ----------
    header
        File header.
    system_name
        Name of the molecular system.
    simbox
        Simulation box, when stored.
    topology
        System topology.
    """

    header: TprHeader
    system_name: str
    simbox: Optional[SimBox]
    topology: TprTopology = field(repr=False)

    def to_dict(self) -> Dict[str, object]:
        """Serialize the whole file.

        Returns
        -------
        dict
            JSON-ready representation.
        """
        return {
            "header": self.header.to_dict(),
            "system_name": self.system_name,
            "simbox": self.simbox.to_dict() if self.simbox else None,
            "topology": self.topology.to_dict(),
        }


def _vector_array(values: List[Optional[Vec3]]) -> Optional[np.ndarray]:
    if not values or any(value is None for value in values):
        return None
    return np.asarray(values, dtype=np.float64).reshape(len(values), 3)
