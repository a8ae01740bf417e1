"""Run-input loading pipeline."""

from __future__ import annotations

import logging
import mmap
import os
import time

from tprview.errors import TopologyConsistencyError, TprIoError
from tprview.model.state import TprFile
from tprview.services.ffparams import parse_function_types
from tprview.services.header import detect_reader_config, parse_header
from tprview.services.state import attach_state_vectors, read_box, read_state_vectors
from tprview.services.symtab import SymbolTable
from tprview.services.topology import parse_topology
from tprview.services.xdr import Buffer, TprReader

logger = logging.getLogger(__name__)


def parse_tpr(data: Buffer) -> TprFile:
    """Decode a complete run-input buffer.

    Parameters
    ----------
    data
        File contents as ``bytes``, ``bytearray`` or ``memoryview``.

    Returns
    -------
    TprFile
        Header, system name, optional box and the full topology with any
        stored state vectors attached.

    Raises
    ------
    MagicMismatchError
        If the buffer is not a run-input file.
    UnsupportedVersionError
        If the file version, or one of its interaction types, is not supported.
    UnexpectedEndOfDataError
        If the buffer ends before a required field.
    TopologyConsistencyError
        If the topology contradicts itself or the header atom count, or is
        missing.
    StateVectorSizeMismatchError
        If flagged state vectors do not match the topology size.
    """

    start = time.perf_counter()
    config = detect_reader_config(data)
    reader = TprReader(data, config)
    header, layout = parse_header(reader)

    simbox = read_box(reader) if header.has_box else None
    # Legacy per coupling group values
    reader.skip_reals(header.n_coupling_groups)

    if not header.has_topology:
        raise TopologyConsistencyError("File does not contain a topology")

    topology_start = time.perf_counter()
    symtab = SymbolTable.parse(reader, layout)
    system_name = symtab.lookup(reader)
    function_types = parse_function_types(reader, layout)
    topology = parse_topology(reader, layout, symtab, len(function_types))
    topology_time = time.perf_counter() - topology_start

    vectors = read_state_vectors(reader, header, topology.n_atoms)
    if header.n_atoms != topology.n_atoms:
        raise TopologyConsistencyError(
            f"Header declares {header.n_atoms} atoms, topology has {topology.n_atoms}",
            {"header": header.n_atoms, "topology": topology.n_atoms},
        )
    topology = attach_state_vectors(topology, vectors)

    logger.debug(
        "Decoded %s: atoms=%d bonds=%d topology=%.3fs total=%.3fs unread=%d",
        system_name,
        topology.n_atoms,
        len(topology.bonds),
        topology_time,
        time.perf_counter() - start,
        reader.remaining,
    )
    return TprFile(header=header, system_name=system_name, simbox=simbox, topology=topology)


def read_tpr(path: str) -> TprFile:
    """Map a run-input file into memory and decode it.

    Parameters
    ----------
    path
        Path to the ``.tpr`` file.

    Returns
    -------
    TprFile
        Decoded file.

    Raises
    ------
    TprIoError
        If the file cannot be opened or mapped.
    """

    logger.debug("Reading run-input file %s", path)
    try:
        with open(path, "rb") as handle:
            # Empty files cannot be mapped.
            if os.fstat(handle.fileno()).st_size == 0:
                data = b""
            else:
                with mmap.mmap(handle.fileno(), 0, access=mmap.ACCESS_READ) as mm:
                    data = mm.read()
    except (OSError, ValueError) as exc:
        raise TprIoError(f"Failed to read {path}", {"path": path, "reason": str(exc)}) from exc
    return parse_tpr(data)
