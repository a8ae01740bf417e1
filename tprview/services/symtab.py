"""Symbol table shared by all names in the topology section."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from tprview.errors import TopologyConsistencyError
from tprview.services.layout import TprLayout
from tprview.services.xdr import TprReader


@dataclass(frozen=True)
class SymbolTable:
    """Interned strings referenced by index from the rest of the body.

    Attributes
    ----------
    symbols
        Strings in file order.
    """

    symbols: Tuple[str, ...]

    @classmethod
    def parse(cls, reader: TprReader, layout: TprLayout) -> "SymbolTable":
        count = reader.read_count("symbol table size")
        return cls(tuple(layout.read_string(reader) for _ in range(count)))

    def lookup(self, reader: TprReader) -> str:
        """Read a symbol index and return its string.

        Raises
        ------
        TopologyConsistencyError
            If the index is outside the table.
        """
        index = reader.read_int32()
        if not 0 <= index < len(self.symbols):
            raise TopologyConsistencyError(
                f"Symbol index {index} outside symbol table of {len(self.symbols)} entries",
                {"index": index, "size": len(self.symbols)},
            )
        return self.symbols[index]
