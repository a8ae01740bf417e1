"""Atomic number to element lookup."""

from __future__ import annotations

from typing import Optional

from ase.data import atomic_names, chemical_symbols

from tprview.config import MAX_ATOMIC_NUMBER
from tprview.model.state import Element


def resolve_element(atomic_number: Optional[int]) -> Optional[Element]:
    """Return the element for an atomic number.

    Parameters
    ----------
    atomic_number
        Atomic number as stored in the file. Coarse-grained and virtual
        particles usually carry ``-1`` or ``0``.

    Returns
    -------
    Element or None
        Element descriptor, or None when the number is absent, non-positive,
        or outside the periodic table.
    """

    if atomic_number is None or atomic_number <= 0 or atomic_number > MAX_ATOMIC_NUMBER:
        return None
    if atomic_number >= min(len(chemical_symbols), len(atomic_names)):
        return None
    return Element(
        atomic_number=int(atomic_number),
        symbol=chemical_symbols[atomic_number],
        name=atomic_names[atomic_number],
    )
