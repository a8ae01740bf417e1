import pytest

from tprview.config import MAX_TPR_VERSION, MIN_TPR_VERSION
from tprview.errors import UnsupportedInteractionError, UnsupportedVersionError
from tprview.services.layout import (
    LAYOUTS,
    InteractionType,
    atoms_per_interaction,
    resolve_layout,
)

IT = InteractionType


def test_layouts_cover_supported_range_without_gaps() -> None:
    assert LAYOUTS[0].first_version == MIN_TPR_VERSION
    assert LAYOUTS[-1].last_version == MAX_TPR_VERSION
    for previous, current in zip(LAYOUTS, LAYOUTS[1:]):
        assert current.first_version == previous.last_version + 1
    for version in range(MIN_TPR_VERSION, MAX_TPR_VERSION + 1):
        assert resolve_layout(version).covers(version)


@pytest.mark.parametrize("version", [MIN_TPR_VERSION - 1, MAX_TPR_VERSION + 1, -5])
def test_out_of_range_versions(version: int) -> None:
    with pytest.raises(UnsupportedVersionError):
        resolve_layout(version)


def test_body_widths_switch_at_in_memory_layout() -> None:
    xdr = resolve_layout(118)
    assert not xdr.in_memory_body
    assert (xdr.ushort_size, xdr.uchar_size, xdr.bool_size) == (4, 4, 4)
    assert not xdr.has_body_size

    compact = resolve_layout(119)
    assert compact.in_memory_body
    assert (compact.ushort_size, compact.uchar_size, compact.bool_size) == (2, 1, 1)
    assert compact.has_body_size


def test_legacy_sections() -> None:
    assert resolve_layout(112).has_atomtype_radii
    assert not resolve_layout(113).has_atomtype_radii
    assert resolve_layout(127).has_atomtypes_block
    assert not resolve_layout(128).has_atomtypes_block
    assert not resolve_layout(119).has_exclusion_group
    assert resolve_layout(120).has_exclusion_group


@pytest.mark.parametrize(
    "ftype, introduced",
    [
        (IT.F_DENSITYFITTING, 117),
        (IT.F_VSITE2FD, 118),
        (IT.F_VSITE1, 121),
        (IT.F_ENNPOT, 137),
    ],
)
def test_interaction_types_appear_in_their_version(ftype: InteractionType, introduced: int) -> None:
    assert ftype not in resolve_layout(introduced - 1).interaction_types
    assert ftype in resolve_layout(introduced).interaction_types


def test_file_numbering_maps_to_current_types() -> None:
    oldest = resolve_layout(103)
    newest = resolve_layout(137)
    assert len(oldest.interaction_types) == len(InteractionType) - 4
    assert len(newest.interaction_types) == len(InteractionType)

    assert oldest.interaction_type(0) is IT.F_BONDS
    assert oldest.interaction_type(64) is IT.F_SETTLE
    assert oldest.interaction_type(65) is IT.F_VSITE2
    assert oldest.interaction_type(73) is IT.F_COM_PULL
    assert resolve_layout(120).interaction_type(66) is IT.F_VSITE2FD
    assert newest.interaction_type(65) is IT.F_VSITE1
    assert newest.interaction_type(78) is IT.F_ENNPOT


def test_unknown_function_type_number() -> None:
    layout = resolve_layout(103)
    with pytest.raises(UnsupportedInteractionError) as excinfo:
        layout.interaction_type(len(layout.interaction_types))
    assert isinstance(excinfo.value, UnsupportedVersionError)
    assert excinfo.value.code == "unsupported_interaction"


def test_parameter_lengths_follow_version() -> None:
    assert resolve_layout(133).parameter_length(IT.F_RESTRANGLES, 4) == 8
    assert resolve_layout(134).parameter_length(IT.F_RESTRANGLES, 4) == 16
    assert resolve_layout(126).parameter_length(IT.F_THOLE_POL, 4) == 16
    assert resolve_layout(127).parameter_length(IT.F_THOLE_POL, 4) == 12
    assert resolve_layout(112).parameter_length(IT.F_GB12_NOLONGERUSED, 8) == 40
    assert resolve_layout(113).parameter_length(IT.F_GB12_NOLONGERUSED, 8) == 0
    assert resolve_layout(137).parameter_length(IT.F_PDIHS, 8) == 4 * 8 + 4
    assert resolve_layout(137).parameter_length(IT.F_CMAP, 4) == 8


def test_parameter_length_without_record_layout() -> None:
    with pytest.raises(UnsupportedInteractionError):
        resolve_layout(137).parameter_length(IT.F_EPOT, 4)


def test_atoms_per_interaction() -> None:
    assert atoms_per_interaction(IT.F_BONDS) == 2
    assert atoms_per_interaction(IT.F_SETTLE) == 3
    assert atoms_per_interaction(IT.F_PDIHS) == 4
    assert atoms_per_interaction(IT.F_CMAP) == 5
    assert atoms_per_interaction(IT.F_EPOT) == 0
