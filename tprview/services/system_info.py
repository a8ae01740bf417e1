"""Tabular views of a decoded run-input file."""

from __future__ import annotations

import logging
import math
from typing import Dict, Optional

import numpy as np
import pandas as pd

from tprview.model.state import TprFile

logger = logging.getLogger(__name__)

ATOM_COLUMNS = (
    "atom_number",
    "atom_name",
    "residue_number",
    "residue_name",
    "element",
    "atomic_number",
    "mass",
    "charge",
)


def build_atom_table(tpr: TprFile) -> pd.DataFrame:
    """Build one row per atom.

    Position, velocity and force columns are added for the vectors stored in
    the file.

    Parameters
    ----------
    tpr
        Decoded run-input file.

    Returns
    -------
    pandas.DataFrame
        Atom table indexed from zero in atom order.
    """

    atoms = tpr.topology.atoms
    df = pd.DataFrame(
        {
            "atom_number": [atom.atom_number for atom in atoms],
            "atom_name": [atom.atom_name for atom in atoms],
            "residue_number": [atom.residue_number for atom in atoms],
            "residue_name": [atom.residue_name for atom in atoms],
            "element": pd.Series(
                [atom.element.symbol if atom.element else None for atom in atoms],
                dtype=object,
            ),
            "atomic_number": pd.array(
                [atom.atomic_number for atom in atoms], dtype="Int64"
            ),
            "mass": np.array([atom.mass for atom in atoms], dtype=float),
            "charge": np.array([atom.charge for atom in atoms], dtype=float),
        },
        columns=list(ATOM_COLUMNS),
    )
    vectors = (
        ("", tpr.topology.positions_array()),
        ("v", tpr.topology.velocities_array()),
        ("f", tpr.topology.forces_array()),
    )
    for prefix, values in vectors:
        if values is None:
            continue
        for axis, label in enumerate("xyz"):
            df[f"{prefix}{label}"] = values[:, axis]
    return df


def build_bond_table(tpr: TprFile) -> pd.DataFrame:
    """Build one row per bond with the names of both atoms.

    Parameters
    ----------
    tpr
        Decoded run-input file.

    Returns
    -------
    pandas.DataFrame
        Bond table in topology order, with an ``intermolecular`` flag.
    """

    topology = tpr.topology
    pairs = np.array([bond.as_tuple() for bond in topology.bonds], dtype=int).reshape(-1, 2)
    names = np.array([atom.atom_name for atom in topology.atoms], dtype=object)
    n_intramolecular = len(topology.bonds) - topology.n_intermolecular_bonds
    df = pd.DataFrame(
        {
            "atom1": pairs[:, 0],
            "atom2": pairs[:, 1],
            "name1": names[pairs[:, 0] - 1],
            "name2": names[pairs[:, 1] - 1],
            "intermolecular": np.arange(len(pairs)) >= n_intramolecular,
        }
    )
    return df


def build_residue_table(tpr: TprFile) -> pd.DataFrame:
    """Summarize atoms, mass and net charge per residue."""

    atoms = build_atom_table(tpr)
    if atoms.empty:
        return pd.DataFrame(
            columns=["residue_number", "residue_name", "n_atoms", "mass", "charge"]
        )
    grouped = atoms.groupby(["residue_number", "residue_name"], sort=True)
    df = grouped.agg(
        n_atoms=("atom_number", "size"),
        mass=("mass", "sum"),
        charge=("charge", "sum"),
    ).reset_index()
    return df


def build_system_info_tables(tpr: TprFile) -> Dict[str, Dict[str, object]]:
    """Build JSON-ready atom, bond and residue tables.

    Parameters
    ----------
    tpr
        Decoded run-input file.

    Returns
    -------
    dict
        Mapping of table identifiers to column/row payloads.
    """

    tables = {
        "atoms": _df_to_table(build_atom_table(tpr)),
        "bonds": _df_to_table(build_bond_table(tpr)),
        "residues": _df_to_table(build_residue_table(tpr)),
    }
    logger.debug(
        "System info tables: %s",
        {name: len(table["rows"]) for name, table in tables.items()},
    )
    return tables


def _df_to_table(df: pd.DataFrame) -> Dict[str, object]:
    safe = df.astype(object).where(pd.notnull(df), None)
    columns = [str(col) for col in safe.columns]
    rows = [[_to_native(value) for value in row] for row in safe.itertuples(index=False)]
    return {"columns": columns, "rows": rows}


def _to_native(value: object) -> Optional[object]:
    if value is None or value is pd.NA:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, (np.integer, np.floating)):
        return value.item()
    return value
