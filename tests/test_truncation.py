import pytest

from tpr_builder import BlockDef, TprDef, build_tpr, dipeptide_molecule, water_molecule
from tprview.errors import UnexpectedEndOfDataError
from tprview.services.layout import InteractionType
from tprview.services.loader import parse_tpr


def _full_file(version: int, double: bool) -> bytes:
    system = TprDef(
        molecule_types=[dipeptide_molecule(), water_molecule()],
        blocks=[BlockDef(0, 1), BlockDef(1, 2)],
        version=version,
        double=double,
        intermolecular={InteractionType.F_BONDS: [(0, 6)]},
        box=[[2.0, 0.0, 0.0], [0.0, 2.0, 0.0], [0.0, 0.0, 2.0]],
        positions=[[0.1 * index, 0.0, 0.0] for index in range(12)],
        forces=[[0.0, 1.0, 0.0]] * 12,
        n_coupling_groups=1,
    )
    return build_tpr(system)


@pytest.mark.parametrize("version, double", [(112, False), (118, True), (137, False)])
def test_every_truncation_fails_with_end_of_data(version: int, double: bool) -> None:
    data = _full_file(version, double)
    assert parse_tpr(data).topology.n_atoms == 12
    for cut in range(len(data)):
        with pytest.raises(UnexpectedEndOfDataError):
            parse_tpr(data[:cut])


def test_parsing_is_deterministic() -> None:
    data = _full_file(137, False)
    first = parse_tpr(data)
    second = parse_tpr(bytearray(data))
    third = parse_tpr(memoryview(data))
    assert first == second == third
    assert first.to_dict() == second.to_dict()


def test_trailing_bytes_are_ignored() -> None:
    data = _full_file(137, False)
    assert parse_tpr(data + b"\x00" * 16) == parse_tpr(data)
