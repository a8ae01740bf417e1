import pytest

from tpr_builder import (
    AtomDef,
    BlockDef,
    MoleculeDef,
    TprDef,
    build_tpr,
    dipeptide_molecule,
    water_molecule,
    water_system,
)
from tprview.errors import TopologyConsistencyError, UnsupportedInteractionError
from tprview.model.templates import (
    AtomTemplate,
    MoleculeBlock,
    MoleculeTypeTemplate,
    ResidueTemplate,
)
from tprview.services.layout import InteractionType
from tprview.services.loader import parse_tpr
from tprview.services.topology import build_topology

IT = InteractionType


def _bonds(tpr) -> list:
    return [bond.as_tuple() for bond in tpr.topology.bonds]


@pytest.mark.parametrize("version", [103, 112, 118, 119, 120, 127, 128, 134, 137])
def test_settle_water(version: int) -> None:
    tpr = parse_tpr(build_tpr(water_system(2, version=version)))

    topology = tpr.topology
    assert tpr.system_name == "Test system"
    assert topology.n_atoms == 6
    assert [atom.atom_name for atom in topology.atoms] == ["OW", "HW1", "HW2"] * 2
    assert [atom.atom_number for atom in topology.atoms] == [1, 2, 3, 4, 5, 6]
    assert [atom.residue_number for atom in topology.atoms] == [1, 1, 1, 2, 2, 2]
    assert {atom.residue_name for atom in topology.atoms} == {"SOL"}
    assert _bonds(tpr) == [(1, 2), (1, 3), (2, 3), (4, 5), (4, 6), (5, 6)]
    assert topology.n_intermolecular_bonds == 0


def test_atom_properties_and_elements() -> None:
    tpr = parse_tpr(build_tpr(water_system(1)))
    oxygen, hydrogen, _ = tpr.topology.atoms
    assert oxygen.mass == pytest.approx(15.9994, rel=1e-6)
    assert oxygen.charge == pytest.approx(-0.834, rel=1e-6)
    assert oxygen.atomic_number == 8
    assert oxygen.element.symbol == "O"
    assert hydrogen.element.symbol == "H"
    assert oxygen.position is None


def test_bonds_then_constraints_then_settles_per_instance() -> None:
    system = TprDef(
        molecule_types=[dipeptide_molecule(), water_molecule()],
        blocks=[BlockDef(0, 2), BlockDef(1, 1)],
    )
    tpr = parse_tpr(build_tpr(system))
    topology = tpr.topology

    assert topology.n_atoms == 15
    assert topology.n_molecule_types == 2
    assert topology.n_molecule_blocks == 2
    assert _bonds(tpr) == [
        (1, 2), (2, 3), (4, 5), (3, 4),
        (7, 8), (8, 9), (10, 11), (9, 10),
        (13, 14), (13, 15), (14, 15),
    ]
    assert [atom.residue_number for atom in topology.atoms] == (
        [1, 1, 1, 2, 2, 2] + [3, 3, 3, 4, 4, 4] + [5, 5, 5]
    )
    assert [atom.residue_name for atom in topology.atoms[:6]] == ["ALA"] * 3 + ["GLY"] * 3
    lone_pair = topology.atoms[5]
    assert lone_pair.atomic_number is None
    assert lone_pair.element is None


def test_atom_count_is_sum_over_blocks() -> None:
    system = TprDef(
        molecule_types=[water_molecule(), dipeptide_molecule()],
        blocks=[BlockDef(0, 4), BlockDef(1, 3), BlockDef(0, 2)],
    )
    tpr = parse_tpr(build_tpr(system))
    assert tpr.topology.n_atoms == 4 * 3 + 3 * 6 + 2 * 3
    assert [atom.atom_number for atom in tpr.topology.atoms] == list(range(1, 37))


def test_intermolecular_bonds_are_appended() -> None:
    system = water_system(
        2,
        intermolecular={IT.F_BONDS: [(0, 3)], IT.F_CONSTR: [(2, 5)], IT.F_ANGLES: [(0, 1, 3)]},
    )
    tpr = parse_tpr(build_tpr(system))
    topology = tpr.topology
    assert topology.n_intermolecular_bonds == 2
    assert _bonds(tpr)[:6] == [(1, 2), (1, 3), (2, 3), (4, 5), (4, 6), (5, 6)]
    assert [bond.as_tuple() for bond in topology.intermolecular_bonds] == [(1, 4), (3, 6)]


def test_intermolecular_flag_without_lists() -> None:
    tpr = parse_tpr(build_tpr(water_system(2, intermolecular={})))
    assert tpr.topology.n_intermolecular_bonds == 0
    assert len(tpr.topology.bonds) == 6


def test_intermolecular_index_beyond_atom_count() -> None:
    system = water_system(2, intermolecular={IT.F_BONDS: [(0, 6)]})
    with pytest.raises(TopologyConsistencyError):
        parse_tpr(build_tpr(system))


def test_cmap_posres_and_groups_are_skipped() -> None:
    system = water_system(2, n_cmap_grids=1, n_group_entries=5)
    system.blocks[0].n_posres = 3
    tpr = parse_tpr(build_tpr(system))
    assert tpr.topology.n_atoms == 6


def test_block_references_unknown_molecule_type() -> None:
    templates = [_template("SOL", 3)]
    with pytest.raises(TopologyConsistencyError) as excinfo:
        build_topology(templates, [MoleculeBlock(1, 1, 3)], None, 3)
    assert excinfo.value.code == "topology_inconsistent"


def test_block_atom_count_disagrees_with_template() -> None:
    system = water_system(1)
    system.blocks[0].atoms_per_molecule = 4
    with pytest.raises(TopologyConsistencyError):
        parse_tpr(build_tpr(system))


@pytest.mark.parametrize("declared", [5, 7])
def test_declared_atom_count_must_match(declared: int) -> None:
    system = water_system(2, declared_atoms=declared)
    with pytest.raises(TopologyConsistencyError):
        parse_tpr(build_tpr(system))


def test_local_index_outside_molecule() -> None:
    molecule = water_molecule()
    molecule.interactions[IT.F_BONDS] = [(0, 3)]
    system = TprDef(molecule_types=[molecule], blocks=[BlockDef(0, 1)])
    with pytest.raises(TopologyConsistencyError):
        parse_tpr(build_tpr(system))


def test_residue_index_outside_molecule() -> None:
    molecule = water_molecule()
    molecule.atoms[2].residue = 1
    system = TprDef(molecule_types=[molecule], blocks=[BlockDef(0, 1)])
    with pytest.raises(TopologyConsistencyError):
        parse_tpr(build_tpr(system))


def test_missing_topology() -> None:
    with pytest.raises(TopologyConsistencyError):
        parse_tpr(build_tpr(water_system(has_topology=False)))


def test_unknown_parameter_layout() -> None:
    system = water_system(
        1,
        extra_function_types=(IT.F_LJ, IT.F_EPOT),
        parameter_sizes={IT.F_EPOT: 0},
    )
    with pytest.raises(UnsupportedInteractionError):
        parse_tpr(build_tpr(system))


def test_single_residue_molecule_repeats_residue_per_instance() -> None:
    ion = MoleculeDef(
        name="NA",
        atoms=[AtomDef("NA", mass=22.99, charge=1.0, atomic_number=11, type_name="NA")],
        residues=[("NA", 1)],
    )
    system = TprDef(molecule_types=[ion], blocks=[BlockDef(0, 3)])
    tpr = parse_tpr(build_tpr(system))
    assert [atom.residue_number for atom in tpr.topology.atoms] == [1, 2, 3]
    assert tpr.topology.bonds == ()
    assert tpr.topology.atoms[0].element.symbol == "Na"


def test_build_topology_from_templates() -> None:
    templates = [_template("DIM", 2, bonds=((0, 1),)), _template("SOL", 3, settles=((0, 1, 2),))]
    topology = build_topology(
        templates,
        [MoleculeBlock(0, 2, 2), MoleculeBlock(1, 1, 3)],
        None,
        7,
    )
    assert [bond.as_tuple() for bond in topology.bonds] == [
        (1, 2), (3, 4), (5, 6), (5, 7), (6, 7),
    ]
    assert [atom.residue_number for atom in topology.atoms] == [1, 1, 2, 2, 3, 3, 3]


def test_residue_entries_sharing_a_number_form_one_residue() -> None:
    molecule = MoleculeDef(
        name="LIG",
        atoms=[
            AtomDef("C1", atomic_number=6, residue=0),
            AtomDef("C2", atomic_number=6, residue=1),
            AtomDef("O1", atomic_number=8, residue=2),
        ],
        residues=[("LIG", 52), ("LIG", 52), ("HOH", 53)],
    )
    system = TprDef(molecule_types=[molecule], blocks=[BlockDef(0, 2)])
    tpr = parse_tpr(build_tpr(system))
    assert [atom.residue_number for atom in tpr.topology.atoms] == [1, 1, 2, 3, 3, 4]
    assert [atom.residue_name for atom in tpr.topology.atoms[:3]] == ["LIG", "LIG", "HOH"]


def test_empty_molecule_type_with_huge_instance_count() -> None:
    templates = [_template("EMPTY", 0), _template("SOL", 3, settles=((0, 1, 2),))]
    topology = build_topology(
        templates,
        [MoleculeBlock(0, 2**31 - 1, 0), MoleculeBlock(1, 1, 3)],
        None,
        3,
    )
    assert topology.n_atoms == 3
    assert [atom.residue_number for atom in topology.atoms] == [1, 1, 1]
    assert len(topology.bonds) == 3


def _template(name, n_atoms, bonds=(), settles=()) -> MoleculeTypeTemplate:
    atoms = tuple(
        AtomTemplate(
            name=f"A{index}",
            mass=1.0,
            charge=0.0,
            residue_index=0,
            atomic_number=None,
            element=None,
        )
        for index in range(n_atoms)
    )
    return MoleculeTypeTemplate(
        name=name,
        atoms=atoms,
        residues=(ResidueTemplate(name, 1),),
        bonds=bonds,
        constraints=(),
        settles=settles,
    )
