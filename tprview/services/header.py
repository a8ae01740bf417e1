"""Decoding of the run-input file header."""

from __future__ import annotations

import logging
from typing import Dict, Tuple

from tprview.config import BODY_SIZE_GENERATION, MIN_HEADER_BYTES, TPR_MAGIC
from tprview.errors import MagicMismatchError, UnexpectedEndOfDataError
from tprview.model.state import Endianness, Precision, TprHeader
from tprview.services.layout import TprLayout, resolve_layout
from tprview.services.xdr import Buffer, ReaderConfig, TprReader

logger = logging.getLogger(__name__)

_PRECISIONS: Dict[int, Precision] = {precision.size: precision for precision in Precision}


def detect_reader_config(data: Buffer) -> ReaderConfig:
    """Determine byte order and precision of a run-input buffer.

    The header starts with the version string followed by the precision
    sentinel (4 or 8). Both are decoded under big- and little-endian
    interpretation; the first interpretation with the magic marker and a valid
    sentinel wins.

    Parameters
    ----------
    data
        Complete file contents.

    Returns
    -------
    ReaderConfig
        Byte order and precision for every later read.

    Raises
    ------
    UnexpectedEndOfDataError
        If the buffer ends inside the header prologue.
    MagicMismatchError
        If no interpretation yields a run-input header.
    """

    size = memoryview(data).nbytes
    if size < MIN_HEADER_BYTES:
        raise UnexpectedEndOfDataError(
            f"Buffer of {size} bytes is too short for a run-input header",
            {"size": size},
        )
    truncated = False
    for endianness in Endianness:
        probe = TprReader(data, ReaderConfig(endianness, Precision.SINGLE))
        try:
            version_string = probe.read_xdr_string()
        except UnexpectedEndOfDataError:
            # A string header whose size field is length + 1 is a real header cut short.
            prefix = TprReader(data, ReaderConfig(endianness, Precision.SINGLE))
            truncated = truncated or prefix.read_int32() == prefix.read_uint32() + 1
            continue
        if TPR_MAGIC not in version_string:
            continue
        sentinel = probe.read_int32()
        precision = _PRECISIONS.get(sentinel)
        if precision is None:
            logger.debug(
                "Rejected %s-endian reading: precision sentinel %d", endianness.name, sentinel
            )
            continue
        logger.debug(
            "Detected %s-endian, %s precision file", endianness.name.lower(), precision.name.lower()
        )
        return ReaderConfig(endianness, precision)
    if truncated:
        raise UnexpectedEndOfDataError(
            f"Buffer of {size} bytes ends inside the version string", {"size": size}
        )
    raise MagicMismatchError(
        f"Not a run-input file: no '{TPR_MAGIC}' marker with a valid precision sentinel"
    )


def parse_header(reader: TprReader) -> Tuple[TprHeader, TprLayout]:
    """Read the file header and resolve the body layout.

    Parameters
    ----------
    reader
        Reader positioned at the start of the file, configured by
        :func:`detect_reader_config`.

    Returns
    -------
    tuple
        Header and the layout descriptor for its version.

    Raises
    ------
    UnsupportedVersionError
        If the file version is outside the supported range. Nothing past the
        version field is consumed in that case.
    """

    version_string = reader.read_xdr_string()
    # Precision sentinel, already interpreted by detect_reader_config.
    reader.read_int32()
    tpr_version = reader.read_int32()
    layout = resolve_layout(tpr_version)

    tpr_generation = reader.read_int32()
    file_tag = reader.read_xdr_string()
    n_atoms = reader.read_count("atom count")
    n_coupling_groups = reader.read_count("coupling group count")
    fep_state = reader.read_int32()
    lambda_value = reader.read_real()

    has_input_record = reader.read_bool(4)
    has_topology = reader.read_bool(4)
    has_positions = reader.read_bool(4)
    has_velocities = reader.read_bool(4)
    has_forces = reader.read_bool(4)
    has_box = reader.read_bool(4)

    body_size = None
    if layout.has_body_size and tpr_generation >= BODY_SIZE_GENERATION:
        body_size = reader.read_int64()

    header = TprHeader(
        version_string=version_string,
        precision=reader.config.precision,
        endianness=reader.config.endianness,
        tpr_version=tpr_version,
        tpr_generation=tpr_generation,
        file_tag=file_tag,
        n_atoms=n_atoms,
        n_coupling_groups=n_coupling_groups,
        fep_state=fep_state,
        lambda_value=lambda_value,
        has_input_record=has_input_record,
        has_topology=has_topology,
        has_positions=has_positions,
        has_velocities=has_velocities,
        has_forces=has_forces,
        has_box=has_box,
        body_size=body_size,
    )
    logger.debug(
        "Header: version %d generation %d, %d atoms, flags box=%s x=%s v=%s f=%s",
        tpr_version,
        tpr_generation,
        n_atoms,
        has_box,
        has_positions,
        has_velocities,
        has_forces,
    )
    return header, layout
