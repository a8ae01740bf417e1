"""Skipping over the force-field parameter block.

Parameter values are not decoded; only the function type list is kept so that
interaction records can be validated against it.
"""

from __future__ import annotations

import logging
from typing import Tuple

from tprview.services.layout import InteractionType, TprLayout
from tprview.services.xdr import TprReader

logger = logging.getLogger(__name__)


def parse_function_types(reader: TprReader, layout: TprLayout) -> Tuple[InteractionType, ...]:
    """Read the function type list and skip every parameter record.

    Parameters
    ----------
    reader
        Reader positioned at the force-field parameter block.
    layout
        Layout of the file version.

    Returns
    -------
    tuple
        Interaction type of every parameter record, in file order.

    Raises
    ------
    UnsupportedInteractionError
        If a function type is unknown for the version or has no documented
        parameter length.
    """

    # Number of atom types; not needed for the topology.
    reader.read_int32()
    n_types = reader.read_count("function type count")
    raw_types = reader.read_int32_array(n_types)
    function_types = tuple(layout.interaction_type(int(number)) for number in raw_types)

    # Repulsion power is stored as a double whatever the precision.
    reader.read_float64()
    # fudgeQQ
    reader.read_real()

    for ftype in function_types:
        reader.skip(layout.parameter_length(ftype, reader.real_size))

    logger.debug("Skipped %d force-field parameter records", n_types)
    return function_types
