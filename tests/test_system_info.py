import json

from tpr_builder import BlockDef, TprDef, build_tpr, dipeptide_molecule, water_system
from tprview.services.layout import InteractionType
from tprview.services.loader import parse_tpr
from tprview.services.system_info import (
    ATOM_COLUMNS,
    build_atom_table,
    build_bond_table,
    build_residue_table,
    build_system_info_tables,
)


def test_atom_table_without_state() -> None:
    tpr = parse_tpr(build_tpr(TprDef([dipeptide_molecule()], [BlockDef(0, 1)])))
    df = build_atom_table(tpr)
    assert list(df.columns) == list(ATOM_COLUMNS)
    assert len(df) == 6
    assert df["atom_name"].tolist() == ["N", "CA", "C", "N", "CA", "LP"]
    assert df["element"].tolist()[:3] == ["N", "C", "C"]
    assert df["element"].dtype == object
    assert df["element"].iloc[5] is None
    assert df["atomic_number"].isna().tolist() == [False] * 5 + [True]


def test_atom_table_with_positions() -> None:
    positions = [[float(index), 0.5, 0.25] for index in range(3)]
    tpr = parse_tpr(build_tpr(water_system(1, positions=positions)))
    df = build_atom_table(tpr)
    assert df["x"].tolist() == [0.0, 1.0, 2.0]
    assert df["z"].tolist() == [0.25] * 3
    assert "vx" not in df.columns


def test_bond_table_marks_intermolecular_bonds() -> None:
    system = water_system(2, intermolecular={InteractionType.F_BONDS: [(0, 3)]})
    df = build_bond_table(parse_tpr(build_tpr(system)))
    assert len(df) == 7
    assert df.iloc[0][["atom1", "atom2", "name1", "name2"]].tolist() == [1, 2, "OW", "HW1"]
    assert df["intermolecular"].tolist() == [False] * 6 + [True]


def test_residue_table() -> None:
    df = build_residue_table(parse_tpr(build_tpr(water_system(2))))
    assert df["residue_number"].tolist() == [1, 2]
    assert df["n_atoms"].tolist() == [3, 3]
    assert abs(df["charge"].iloc[0]) < 1e-5


def test_tables_are_json_ready() -> None:
    tables = build_system_info_tables(parse_tpr(build_tpr(water_system(2))))
    assert set(tables) == {"atoms", "bonds", "residues"}
    assert len(tables["atoms"]["rows"]) == 6
    assert len(tables["bonds"]["rows"]) == 6
    json.dumps(tables)
