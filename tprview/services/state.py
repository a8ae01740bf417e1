"""Decoding of the simulation box and per-atom state vectors."""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Optional, Tuple

import numpy as np

from tprview.config import DIM
from tprview.errors import StateVectorSizeMismatchError
from tprview.model.state import Matrix3, SimBox, TprHeader, TprTopology, Vec3
from tprview.services.xdr import TprReader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateVectors:
    """Per-atom arrays read from the file; None when not stored.

    Attributes
    ----------
    positions
        (N, 3) positions.
    velocities
        (N, 3) velocities.
    forces
        (N, 3) forces.
    """

    positions: Optional[np.ndarray] = None
    velocities: Optional[np.ndarray] = None
    forces: Optional[np.ndarray] = None

    @property
    def empty(self) -> bool:
        return self.positions is None and self.velocities is None and self.forces is None


def read_box(reader: TprReader) -> SimBox:
    """Read the box, relative box, and box velocity matrices."""

    values = reader.read_reals(3 * DIM * DIM).reshape(3, DIM, DIM)
    return SimBox(
        vectors=_matrix(values[0]),
        relative=_matrix(values[1]),
        velocity=_matrix(values[2]),
    )


def read_state_vectors(reader: TprReader, header: TprHeader, n_atoms: int) -> StateVectors:
    """Read positions, velocities, and forces, in that order, when flagged.

    Parameters
    ----------
    reader
        Reader positioned after the topology section.
    header
        File header with presence flags and the declared atom count.
    n_atoms
        Atom count of the reconstructed topology.

    Returns
    -------
    StateVectors
        Arrays for the flagged vectors. Nothing is consumed for absent ones.

    Raises
    ------
    StateVectorSizeMismatchError
        If a vector is flagged and its declared length ``3 * header.n_atoms``
        differs from ``3 * n_atoms``.
    """

    flags = (header.has_positions, header.has_velocities, header.has_forces)
    if not any(flags):
        return StateVectors()
    declared = DIM * header.n_atoms
    expected = DIM * n_atoms
    if declared != expected:
        raise StateVectorSizeMismatchError(
            f"State vectors declare {declared} values but the topology needs {expected}",
            {"declared": declared, "expected": expected},
        )
    arrays = [
        reader.read_reals(expected).reshape(n_atoms, DIM) if present else None
        for present in flags
    ]
    logger.debug(
        "Read state vectors: positions=%s velocities=%s forces=%s", *(bool(flag) for flag in flags)
    )
    return StateVectors(positions=arrays[0], velocities=arrays[1], forces=arrays[2])


def attach_state_vectors(topology: TprTopology, vectors: StateVectors) -> TprTopology:
    """Return a topology whose atoms carry the given state vectors."""

    if vectors.empty:
        return topology
    positions = _rows(vectors.positions, topology.n_atoms)
    velocities = _rows(vectors.velocities, topology.n_atoms)
    forces = _rows(vectors.forces, topology.n_atoms)
    atoms = tuple(
        replace(atom, position=positions[index], velocity=velocities[index], force=forces[index])
        for index, atom in enumerate(topology.atoms)
    )
    return replace(topology, atoms=atoms)


def _rows(values: Optional[np.ndarray], count: int) -> Tuple[Optional[Vec3], ...]:
    if values is None:
        return (None,) * count
    return tuple((row[0], row[1], row[2]) for row in values.tolist())


def _matrix(values: np.ndarray) -> Matrix3:
    rows = values.tolist()
    return ((rows[0][0], rows[0][1], rows[0][2]),
            (rows[1][0], rows[1][1], rows[1][2]),
            (rows[2][0], rows[2][1], rows[2][2]))
