"""Sequential, byte-order and precision aware reads from an in-memory buffer."""

from __future__ import annotations

from dataclasses import dataclass
import struct
from typing import Callable, Dict, Union

import numpy as np

from tprview.errors import TopologyConsistencyError, UnexpectedEndOfDataError
from tprview.model.state import Endianness, Precision

Buffer = Union[bytes, bytearray, memoryview]


@dataclass(frozen=True)
class ReaderConfig:
    """Byte order and real width used for every read of one parse.

    Attributes
    ----------
    endianness
        Byte order of the buffer.
    precision
        Width of stored reals.
    """

    endianness: Endianness
    precision: Precision


class TprReader:
    """Read cursor over a run-input buffer.

    Every read advances the cursor. Reads past the end of the buffer raise
    :class:`~tprview.errors.UnexpectedEndOfDataError` and leave the cursor where
    it was. Reals are returned as Python floats or float64 arrays whatever the
    stored precision.
    """

    def __init__(self, data: Buffer, config: ReaderConfig, offset: int = 0) -> None:
        view = memoryview(data)
        if view.format != "B" or view.ndim != 1:
            view = view.cast("B")
        self._data = view
        self._pos = offset
        self.config = config
        prefix = config.endianness.prefix
        self._uint8 = struct.Struct(prefix + "B")
        self._uint16 = struct.Struct(prefix + "H")
        self._int32 = struct.Struct(prefix + "i")
        self._uint32 = struct.Struct(prefix + "I")
        self._int64 = struct.Struct(prefix + "q")
        self._uint64 = struct.Struct(prefix + "Q")
        self._float64 = struct.Struct(prefix + "d")
        if config.precision is Precision.DOUBLE:
            self._real = self._float64
            self._real_dtype = np.dtype(prefix + "f8")
        else:
            self._real = struct.Struct(prefix + "f")
            self._real_dtype = np.dtype(prefix + "f4")
        self._int32_dtype = np.dtype(prefix + "i4")
        self._uint_readers: Dict[int, Callable[[], int]] = {
            1: self.read_uint8,
            2: self.read_uint16,
            4: self.read_uint32,
        }

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    @property
    def real_size(self) -> int:
        return self._real.size

    def _take(self, size: int) -> memoryview:
        if size < 0:
            raise ValueError(f"Cannot read a negative number of bytes ({size})")
        end = self._pos + size
        if end > len(self._data):
            raise UnexpectedEndOfDataError(
                f"Unexpected end of data: needed {size} bytes at offset {self._pos}, "
                f"{self.remaining} left",
                {"offset": self._pos, "requested": size, "remaining": self.remaining},
            )
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def _unpack(self, packer: struct.Struct):
        return packer.unpack(self._take(packer.size))[0]

    def skip(self, n_bytes: int) -> None:
        self._take(n_bytes)

    def skip_reals(self, count: int) -> None:
        self._take(count * self._real.size)

    def read_uint8(self) -> int:
        return self._unpack(self._uint8)

    def read_uint16(self) -> int:
        return self._unpack(self._uint16)

    def read_int32(self) -> int:
        return self._unpack(self._int32)

    def read_uint32(self) -> int:
        return self._unpack(self._uint32)

    def read_int64(self) -> int:
        return self._unpack(self._int64)

    def read_uint64(self) -> int:
        return self._unpack(self._uint64)

    def read_float64(self) -> float:
        return self._unpack(self._float64)

    def read_uint(self, size: int) -> int:
        """Read an unsigned integer stored in ``size`` bytes (1, 2 or 4)."""
        try:
            reader = self._uint_readers[size]
        except KeyError:
            raise ValueError(f"Unsupported unsigned integer width {size}") from None
        return reader()

    def read_bool(self, size: int) -> bool:
        return self.read_uint(size) != 0

    def read_real(self) -> float:
        return float(self._unpack(self._real))

    def read_reals(self, count: int) -> np.ndarray:
        """Read ``count`` reals into a float64 array.

        Parameters
        ----------
        count
            Number of reals to read.

        Returns
        -------
        numpy.ndarray
            1-D float64 array of length ``count``.
        """
        raw = self._take(count * self._real.size)
        return np.frombuffer(raw, dtype=self._real_dtype, count=count).astype(np.float64)

    def read_int32_array(self, count: int) -> np.ndarray:
        raw = self._take(count * 4)
        return np.frombuffer(raw, dtype=self._int32_dtype, count=count).astype(np.int64)

    def read_count(self, what: str) -> int:
        """Read an ``int32`` count and reject negative values.

        Raises
        ------
        TopologyConsistencyError
            If the stored count is negative.
        """
        value = self.read_int32()
        if value < 0:
            raise TopologyConsistencyError(
                f"Negative {what} ({value}) at offset {self._pos - 4}",
                {"field": what, "value": value},
            )
        return value

    def read_xdr_string(self) -> str:
        """Read a string with a 4-byte size, 4-byte length, and 4-byte padding."""
        self.skip(4)
        length = self.read_uint32()
        padded = length + (-length % 4)
        raw = bytes(self._take(padded))
        return _decode(raw[:length])

    def read_sized_string(self) -> str:
        """Read a string prefixed by an unsigned 8-byte length, without padding."""
        length = self.read_uint64()
        return _decode(bytes(self._take(length)))


def _decode(raw: bytes) -> str:
    end = raw.find(b"\x00")
    if end >= 0:
        raw = raw[:end]
    return raw.decode("utf-8", errors="replace")
