import pytest

from tprview.services.elements import resolve_element


def test_known_elements() -> None:
    oxygen = resolve_element(8)
    assert oxygen.atomic_number == 8
    assert oxygen.symbol == "O"
    assert oxygen.name == "Oxygen"
    assert resolve_element(1).symbol == "H"
    assert resolve_element(17).symbol == "Cl"
    assert oxygen.to_dict() == {"atomic_number": 8, "symbol": "O", "name": "Oxygen"}


@pytest.mark.parametrize("atomic_number", [None, -1, 0, 119, 500])
def test_unresolved_numbers_are_absent(atomic_number) -> None:
    assert resolve_element(atomic_number) is None
