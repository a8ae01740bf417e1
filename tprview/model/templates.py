"""Per-molecule-type templates read from the topology section."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from tprview.model.state import Element


@dataclass(frozen=True)
class AtomTemplate:
    """Atom of a molecule type.

    Attributes
    ----------
    name
        Atom name.
    mass
        Atomic mass.
    charge
        Partial charge.
    residue_index
        0-based index into the molecule type residues.
    atomic_number
        Atomic number, when positive in the file.
    element
        Resolved element.
    """

    name: str
    mass: float
    charge: float
    residue_index: int
    atomic_number: Optional[int]
    element: Optional[Element]


@dataclass(frozen=True)
class ResidueTemplate:
    name: str
    number: int


@dataclass(frozen=True)
class MoleculeTypeTemplate:
    """Reusable molecule definition with local (0-based) atom indices.

    Attributes
    ----------
    name
        Molecule type name.
    atoms
        Atom templates.
    residues
        Residue templates.
    bonds
        Pairs from bond-like interactions.
    constraints
        Pairs from constraint interactions.
    settles
        (O, H1, H2) triples from rigid water constraints.
    """

    name: str
    atoms: Tuple[AtomTemplate, ...]
    residues: Tuple[ResidueTemplate, ...]
    bonds: Tuple[Tuple[int, int], ...]
    constraints: Tuple[Tuple[int, int], ...]
    settles: Tuple[Tuple[int, int, int], ...]

    @property
    def n_atoms(self) -> int:
        return len(self.atoms)


@dataclass(frozen=True)
class MoleculeBlock:
    """Instantiation record of a molecule type.

    Attributes
    ----------
    molecule_type
        Index of the molecule type.
    n_molecules
        Number of instances.
    atoms_per_molecule
        Atom count of one instance as recorded in the block.
    """

    molecule_type: int
    n_molecules: int
    atoms_per_molecule: int
