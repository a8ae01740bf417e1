"""MDAnalysis bridge for decoded run-input files."""

from __future__ import annotations

import logging

import MDAnalysis as mda
from MDAnalysis.lib.mdamath import triclinic_box
import numpy as np

from tprview.model.state import TprFile

logger = logging.getLogger(__name__)

# Run-input files store nanometres; MDAnalysis works in angstroms.
NM_TO_ANGSTROM = 10.0


def build_universe(tpr: TprFile) -> mda.Universe:
    """Build an in-memory MDAnalysis Universe from a decoded file.

    Parameters
    ----------
    tpr
        Decoded run-input file.

    Returns
    -------
    MDAnalysis.Universe
        Universe with names, residues, masses, charges, elements and bonds.
        Positions, velocities, forces and box dimensions are set when the file
        stores them, converted to MDAnalysis units.
    """

    topology = tpr.topology
    atoms = topology.atoms
    n_atoms = topology.n_atoms

    # Residue numbers are consecutive from 1 in atom order.
    resindices = np.array([atom.residue_number - 1 for atom in atoms], dtype=int)
    n_residues = int(resindices.max()) + 1 if n_atoms else 0
    resnames = [""] * n_residues
    for atom in atoms:
        resnames[atom.residue_number - 1] = atom.residue_name

    positions = topology.positions_array()
    velocities = topology.velocities_array()
    forces = topology.forces_array()

    universe = mda.Universe.empty(
        n_atoms,
        n_residues=n_residues,
        atom_resindex=resindices,
        trajectory=n_atoms > 0,
        velocities=velocities is not None,
        forces=forces is not None,
    )
    universe.add_TopologyAttr("names", [atom.atom_name for atom in atoms])
    universe.add_TopologyAttr("ids", [atom.atom_number for atom in atoms])
    universe.add_TopologyAttr("masses", [atom.mass for atom in atoms])
    universe.add_TopologyAttr("charges", [atom.charge for atom in atoms])
    universe.add_TopologyAttr(
        "elements", [atom.element.symbol if atom.element else "" for atom in atoms]
    )
    universe.add_TopologyAttr("resnames", resnames)
    universe.add_TopologyAttr("resids", np.arange(1, n_residues + 1))
    universe.add_TopologyAttr(
        "bonds", [(bond.atom1 - 1, bond.atom2 - 1) for bond in topology.bonds]
    )

    if positions is not None:
        universe.atoms.positions = positions * NM_TO_ANGSTROM
    if velocities is not None:
        universe.atoms.velocities = velocities * NM_TO_ANGSTROM
    if forces is not None:
        universe.atoms.forces = forces / NM_TO_ANGSTROM
    if tpr.simbox is not None and n_atoms:
        vectors = tpr.simbox.as_array() * NM_TO_ANGSTROM
        universe.dimensions = triclinic_box(vectors[0], vectors[1], vectors[2])

    logger.debug(
        "Built Universe for %s: atoms=%d residues=%d bonds=%d",
        tpr.system_name,
        n_atoms,
        n_residues,
        len(topology.bonds),
    )
    return universe
