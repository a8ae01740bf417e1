"""Topology reconstruction from molecule types and molecule blocks."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from tprview.config import DIM, NR_GROUP_TYPES
from tprview.errors import TopologyConsistencyError
from tprview.model.state import Atom, Bond, TprTopology
from tprview.model.templates import (
    AtomTemplate,
    MoleculeBlock,
    MoleculeTypeTemplate,
    ResidueTemplate,
)
from tprview.services.elements import resolve_element
from tprview.services.layout import (
    BOND_TYPES,
    CONSTRAINT_TYPES,
    SETTLE_TYPE,
    InteractionType,
    TprLayout,
    atoms_per_interaction,
)
from tprview.services.symtab import SymbolTable
from tprview.services.xdr import TprReader

logger = logging.getLogger(__name__)

InteractionLists = Dict[InteractionType, np.ndarray]

_TOPOLOGY_TYPES = BOND_TYPES | CONSTRAINT_TYPES | {SETTLE_TYPE}


def parse_topology(
    reader: TprReader,
    layout: TprLayout,
    symtab: SymbolTable,
    n_parameters: int,
) -> TprTopology:
    """Read molecule types and blocks and build the flat system topology.

    Parameters
    ----------
    reader
        Reader positioned after the force-field parameter block.
    layout
        Layout of the file version.
    symtab
        Symbol table of the file.
    n_parameters
        Number of force-field parameter records; interaction records must
        reference one of them.

    Returns
    -------
    TprTopology
        Atoms and bonds of the whole system, without state vectors.

    Raises
    ------
    TopologyConsistencyError
        If indices or counts contradict each other.
    """

    n_moltypes = reader.read_count("molecule type count")
    molecule_types = [
        read_molecule_type(reader, layout, symtab, n_parameters) for _ in range(n_moltypes)
    ]

    n_molblocks = reader.read_count("molecule block count")
    molecule_blocks = [read_molecule_block(reader) for _ in range(n_molblocks)]

    declared_atoms = reader.read_count("topology atom count")

    intermolecular: Optional[InteractionLists] = None
    if reader.read_bool(layout.bool_size):
        intermolecular = read_interaction_lists(reader, layout, n_parameters)

    _skip_trailing_sections(reader, layout)

    topology = build_topology(molecule_types, molecule_blocks, intermolecular, declared_atoms)
    logger.debug(
        "Topology: %d molecule types, %d blocks, %d atoms, %d bonds (%d intermolecular)",
        n_moltypes,
        n_molblocks,
        topology.n_atoms,
        len(topology.bonds),
        topology.n_intermolecular_bonds,
    )
    return topology


def read_interaction_lists(
    reader: TprReader, layout: TprLayout, n_parameters: int
) -> InteractionLists:
    """Read one interaction list per interaction type present in the layout.

    Only bond-like, constraint and settle lists are returned, as arrays of
    atom indices with one row per record. Every other list is consumed using
    its record length and dropped.
    """

    lists: InteractionLists = {}
    for ftype in layout.interaction_types:
        size = reader.read_count(f"{ftype.name} list length")
        if size == 0:
            continue
        stride = atoms_per_interaction(ftype) + 1
        if size % stride:
            raise TopologyConsistencyError(
                f"{ftype.name} list length {size} is not a multiple of its record size {stride}",
                {"interaction": ftype.name, "size": size, "stride": stride},
            )
        records = reader.read_int32_array(size).reshape(-1, stride)
        parameters = records[:, 0]
        if parameters.min() < 0 or parameters.max() >= n_parameters:
            raise TopologyConsistencyError(
                f"{ftype.name} references a parameter outside the {n_parameters} stored",
                {"interaction": ftype.name},
            )
        if ftype in _TOPOLOGY_TYPES:
            lists[ftype] = records[:, 1:]
    return lists


def read_molecule_type(
    reader: TprReader, layout: TprLayout, symtab: SymbolTable, n_parameters: int
) -> MoleculeTypeTemplate:
    """Read one molecule type template."""

    name = symtab.lookup(reader)
    n_atoms = reader.read_count("molecule type atom count")
    n_residues = reader.read_count("molecule type residue count")

    raw_atoms: List[Tuple[float, float, int, int]] = []
    for _ in range(n_atoms):
        mass = reader.read_real()
        charge = reader.read_real()
        # B-state mass and charge
        reader.skip_reals(2)
        # A and B atom type indices
        reader.read_uint(layout.ushort_size)
        reader.read_uint(layout.ushort_size)
        # particle type
        reader.read_int32()
        residue_index = reader.read_int32()
        atomic_number = reader.read_int32()
        raw_atoms.append((mass, charge, residue_index, atomic_number))

    atom_names = [symtab.lookup(reader) for _ in range(n_atoms)]
    # A and B atom type names
    for _ in range(2 * n_atoms):
        symtab.lookup(reader)

    residues = []
    for _ in range(n_residues):
        residue_name = symtab.lookup(reader)
        residue_number = reader.read_int32()
        # insertion code
        reader.read_uint(layout.uchar_size)
        residues.append(ResidueTemplate(residue_name, residue_number))

    atoms = []
    for atom_name, (mass, charge, residue_index, atomic_number) in zip(atom_names, raw_atoms):
        if not 0 <= residue_index < n_residues:
            raise TopologyConsistencyError(
                f"Atom {atom_name} of {name} references residue {residue_index} "
                f"of {n_residues}",
                {"molecule_type": name, "residue_index": residue_index},
            )
        known_number = atomic_number if atomic_number > 0 else None
        atoms.append(
            AtomTemplate(
                name=atom_name,
                mass=mass,
                charge=charge,
                residue_index=residue_index,
                atomic_number=known_number,
                element=resolve_element(known_number),
            )
        )

    lists = read_interaction_lists(reader, layout, n_parameters)
    for ftype, indices in lists.items():
        if indices.size and (indices.min() < 0 or indices.max() >= n_atoms):
            raise TopologyConsistencyError(
                f"{ftype.name} in molecule type {name} references an atom outside 0-{n_atoms - 1}",
                {"molecule_type": name, "interaction": ftype.name},
            )

    # Legacy charge groups
    n_blocks = reader.read_count("charge group count")
    reader.skip(4 * (n_blocks + 1))
    # Exclusions
    n_exclusion_lists = reader.read_count("exclusion list count")
    n_excluded = reader.read_count("excluded atom count")
    reader.skip(4 * (n_exclusion_lists + 1))
    reader.skip(4 * n_excluded)

    return MoleculeTypeTemplate(
        name=name,
        atoms=tuple(atoms),
        residues=tuple(residues),
        bonds=_collect(lists, BOND_TYPES),
        constraints=_collect(lists, CONSTRAINT_TYPES),
        settles=_collect(lists, {SETTLE_TYPE}),
    )


def read_molecule_block(reader: TprReader) -> MoleculeBlock:
    """Read one molecule block and skip its position restraint references."""

    molecule_type = reader.read_int32()
    n_molecules = reader.read_count("molecule count")
    atoms_per_molecule = reader.read_count("atoms per molecule")
    # A and B position restraint reference coordinates
    for _ in range(2):
        n_posres = reader.read_count("position restraint count")
        reader.skip_reals(DIM * n_posres)
    return MoleculeBlock(molecule_type, n_molecules, atoms_per_molecule)


def build_topology(
    molecule_types: Sequence[MoleculeTypeTemplate],
    molecule_blocks: Sequence[MoleculeBlock],
    intermolecular: Optional[InteractionLists],
    declared_atoms: int,
) -> TprTopology:
    """Instantiate molecule types and append intermolecular bonds.

    Parameters
    ----------
    molecule_types
        Molecule type templates.
    molecule_blocks
        Molecule blocks in file order.
    intermolecular
        Intermolecular interaction lists with 0-based global indices.
    declared_atoms
        Total atom count recorded in the topology section.

    Returns
    -------
    TprTopology
        Atoms in instantiation order; intramolecular bonds first, then
        intermolecular bonds.

    Raises
    ------
    TopologyConsistencyError
        If a block references a missing molecule type, disagrees with its
        template size, or instantiation overruns ``declared_atoms``.
    """

    atoms: List[Atom] = []
    bonds: List[Bond] = []
    residue_counter = 0

    for block_index, block in enumerate(molecule_blocks):
        if not 0 <= block.molecule_type < len(molecule_types):
            raise TopologyConsistencyError(
                f"Molecule block {block_index} references molecule type {block.molecule_type} "
                f"of {len(molecule_types)}",
                {"block": block_index, "molecule_type": block.molecule_type},
            )
        moltype = molecule_types[block.molecule_type]
        if block.atoms_per_molecule != moltype.n_atoms:
            raise TopologyConsistencyError(
                f"Molecule block {block_index} declares {block.atoms_per_molecule} atoms per "
                f"molecule but {moltype.name} has {moltype.n_atoms}",
                {"block": block_index, "molecule_type": moltype.name},
            )
        block_end = len(atoms) + block.n_molecules * moltype.n_atoms
        if block_end > declared_atoms:
            raise TopologyConsistencyError(
                f"Molecule block {block_index} reaches atom {block_end}, beyond the "
                f"{declared_atoms} atoms declared",
                {"block": block_index, "atoms": block_end, "declared": declared_atoms},
            )
        if moltype.n_atoms == 0:
            continue
        for _ in range(block.n_molecules):
            residue_counter = _instantiate(moltype, residue_counter, atoms, bonds)

    if len(atoms) != declared_atoms:
        raise TopologyConsistencyError(
            f"Molecule blocks define {len(atoms)} atoms, topology declares {declared_atoms}",
            {"atoms": len(atoms), "declared": declared_atoms},
        )

    n_intermolecular = 0
    if intermolecular:
        for ftype, indices in intermolecular.items():
            if indices.size and (indices.min() < 0 or indices.max() >= declared_atoms):
                raise TopologyConsistencyError(
                    f"Intermolecular {ftype.name} references an atom outside 0-{declared_atoms - 1}",
                    {"interaction": ftype.name, "declared": declared_atoms},
                )
        inter_bonds = _expand_bonds(
            _collect(intermolecular, BOND_TYPES),
            _collect(intermolecular, CONSTRAINT_TYPES),
            _collect(intermolecular, {SETTLE_TYPE}),
            offset=0,
        )
        bonds.extend(inter_bonds)
        n_intermolecular = len(inter_bonds)

    return TprTopology(
        atoms=tuple(atoms),
        bonds=tuple(bonds),
        n_molecule_types=len(molecule_types),
        n_molecule_blocks=len(molecule_blocks),
        n_intermolecular_bonds=n_intermolecular,
    )


def _instantiate(
    moltype: MoleculeTypeTemplate,
    residue_counter: int,
    atoms: List[Atom],
    bonds: List[Bond],
) -> int:
    offset = len(atoms)
    previous_number: Optional[int] = None
    for local_index, template in enumerate(moltype.atoms):
        residue = moltype.residues[template.residue_index]
        # Entries sharing a residue number form one residue.
        if residue.number != previous_number:
            residue_counter += 1
            previous_number = residue.number
        atoms.append(
            Atom(
                atom_name=template.name,
                atom_number=offset + local_index + 1,
                residue_name=residue.name,
                residue_number=residue_counter,
                mass=template.mass,
                charge=template.charge,
                atomic_number=template.atomic_number,
                element=template.element,
            )
        )
    bonds.extend(_expand_bonds(moltype.bonds, moltype.constraints, moltype.settles, offset))
    return residue_counter


def _expand_bonds(
    pairs: Sequence[Tuple[int, ...]],
    constraints: Sequence[Tuple[int, ...]],
    settles: Sequence[Tuple[int, ...]],
    offset: int,
) -> List[Bond]:
    # 0-based indices in, 1-based atom numbers out.
    base = offset + 1
    bonds = [Bond(a + base, b + base) for a, b in pairs]
    bonds.extend(Bond(a + base, b + base) for a, b in constraints)
    for oxygen, hydrogen1, hydrogen2 in settles:
        bonds.append(Bond(oxygen + base, hydrogen1 + base))
        bonds.append(Bond(oxygen + base, hydrogen2 + base))
        bonds.append(Bond(hydrogen1 + base, hydrogen2 + base))
    return bonds


def _collect(lists: InteractionLists, ftypes) -> Tuple[Tuple[int, ...], ...]:
    # Interaction type order, then file order within a type.
    collected: List[Tuple[int, ...]] = []
    for ftype in sorted(lists):
        if ftype in ftypes:
            collected.extend(tuple(int(index) for index in row) for row in lists[ftype].tolist())
    return tuple(collected)


def _skip_trailing_sections(reader: TprReader, layout: TprLayout) -> None:
    if layout.has_atomtypes_block:
        n_types = reader.read_count("atom type count")
        if layout.has_atomtype_radii:
            reader.skip_reals(5 * n_types)
        # atomic numbers
        reader.skip(4 * n_types)

    # Dihedral correction maps
    n_grids = reader.read_count("correction map count")
    grid_spacing = reader.read_count("correction map spacing")
    reader.skip_reals(4 * n_grids * grid_spacing * grid_spacing)

    # Atom groups
    for _ in range(NR_GROUP_TYPES):
        n_groups = reader.read_count("group count")
        reader.skip(4 * n_groups)
    n_group_names = reader.read_count("group name count")
    reader.skip(4 * n_group_names)
    for _ in range(NR_GROUP_TYPES):
        n_group_numbers = reader.read_count("group number count")
        reader.skip(layout.uchar_size * n_group_numbers)

    if layout.has_exclusion_group:
        group_size = reader.read_int64()
        if group_size < 0:
            raise TopologyConsistencyError(
                f"Negative intermolecular exclusion group size ({group_size})",
                {"size": group_size},
            )
        reader.skip(4 * group_size)
