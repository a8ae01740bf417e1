"""tprview command line entrypoint."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from tprview import config
from tprview.errors import TprError
from tprview.logging_config import configure_logging
from tprview.model.state import TprFile
from tprview.services.loader import read_tpr
from tprview.services.system_info import build_atom_table, build_bond_table

logger = logging.getLogger(__name__)


def _parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=config.APP_NAME,
        description="Inspect the header and topology of a GROMACS run-input (.tpr) file",
    )
    parser.add_argument("tpr_path", help="Path to the .tpr file")
    parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        help="Print the decoded file as JSON",
    )
    parser.add_argument(
        "--atoms",
        dest="show_atoms",
        action="store_true",
        help="Print the atom table",
    )
    parser.add_argument(
        "--bonds",
        dest="show_bonds",
        action="store_true",
        help="Print the bond table",
    )
    parser.add_argument(
        "--rows",
        dest="rows",
        type=int,
        default=config.DEFAULT_TABLE_ROWS,
        help="Maximum number of table rows to print (0 prints all)",
    )
    parser.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Write debug logs to this file instead of stderr",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        dest="verbose",
        action="store_true",
        help="Print debug logs to stderr",
    )
    return parser.parse_args(argv[1:])


def format_summary(tpr: TprFile) -> str:
    """Return a short human-readable description of a decoded file."""

    header = tpr.header
    topology = tpr.topology
    stored = [
        label
        for label, present in (
            ("box", header.has_box),
            ("positions", header.has_positions),
            ("velocities", header.has_velocities),
            ("forces", header.has_forces),
        )
        if present
    ]
    residues = {atom.residue_number for atom in topology.atoms}
    lines = [
        f"System:      {tpr.system_name}",
        f"Version:     {header.version_string} (file version {header.tpr_version}, "
        f"generation {header.tpr_generation})",
        f"Encoding:    {header.precision.name.lower()} precision, "
        f"{header.endianness.name.lower()}-endian",
        f"Atoms:       {topology.n_atoms}",
        f"Residues:    {len(residues)}",
        f"Bonds:       {len(topology.bonds)} ({topology.n_intermolecular_bonds} intermolecular)",
        f"Molecules:   {topology.n_molecule_types} types in {topology.n_molecule_blocks} blocks",
        f"Stored:      {', '.join(stored) if stored else 'topology only'}",
    ]
    if tpr.simbox is not None:
        diagonal = " ".join(f"{tpr.simbox.vectors[i][i]:.4f}" for i in range(config.DIM))
        lines.append(f"Box:         {diagonal}")
    return "\n".join(lines)


def _print_table(df, rows: int) -> None:
    if rows > 0 and len(df) > rows:
        print(df.head(rows).to_string())
        print(f"... {len(df) - rows} more rows")
    else:
        print(df.to_string())


def run(argv: List[str]) -> int:
    """Run the command line interface.

    Parameters
    ----------
    argv
        Full argument vector, program name first.

    Returns
    -------
    int
        Process exit status.
    """

    args = _parse_args(argv)
    configure_logging(args.log_file, verbose=args.verbose)
    logger.debug("Reading %s", args.tpr_path)
    try:
        tpr = read_tpr(args.tpr_path)
    except TprError as exc:
        logger.error("Failed to decode %s: %s", args.tpr_path, exc.message)
        print(json.dumps(exc.to_result(), indent=2))
        return 1

    if args.as_json:
        print(json.dumps({"ok": True, "data": tpr.to_dict()}, indent=2))
        return 0

    print(format_summary(tpr))
    if args.show_atoms:
        print()
        _print_table(build_atom_table(tpr), args.rows)
    if args.show_bonds:
        print()
        _print_table(build_bond_table(tpr), args.rows)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Run tprview and exit with its status.

    Returns
    -------
    None
        This function does not return a value.
    """

    sys.exit(run(sys.argv if argv is None else argv))


if __name__ == "__main__":
    main()
