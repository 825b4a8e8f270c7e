"""Reading the physical memory range from a flattened device tree blob."""

from __future__ import annotations

import struct
from dataclasses import dataclass

__all__ = [
    "DtbError",
    "MemoryInfo",
    "extract_memory_info",
    "FDT_MAGIC",
    "FDT_BEGIN_NODE",
    "FDT_END_NODE",
    "FDT_PROP",
    "FDT_NOP",
    "FDT_END",
]

FDT_MAGIC = 0xD00DFEED

FDT_BEGIN_NODE = 0x00000001
FDT_END_NODE = 0x00000002
FDT_PROP = 0x00000003
FDT_NOP = 0x00000004
FDT_END = 0x00000009

_HEADER = struct.Struct(">10I")


class DtbError(ValueError):
    """The blob is malformed or holds no memory description."""


@dataclass(frozen=True)
class MemoryInfo:
    """Base address and size of physical memory."""

    base: int
    size: int

    @property
    def end(self) -> int:
        """Address of the last byte of memory."""
        return self.base + self.size - 1


def _u32(blob: bytes, offset: int) -> int:
    try:
        return struct.unpack_from(">I", blob, offset)[0]
    except struct.error:
        raise DtbError(f"structure block runs past the blob at {offset}") from None


def _c_string(blob: bytes, offset: int) -> bytes:
    end = blob.find(b"\0", offset)
    if end < 0:
        raise DtbError(f"unterminated string at {offset}")
    return blob[offset:end]


def extract_memory_info(blob: bytes) -> MemoryInfo:
    """Find the ``reg`` property of the first ``memory`` node.

    Raises DtbError if the magic number is wrong, the structure block is
    malformed, or no usable memory ``reg`` property exists.
    """
    try:
        header = _HEADER.unpack_from(blob, 0)
    except struct.error:
        raise DtbError("blob is shorter than the header") from None
    magic, _total, off_struct, off_strings = header[:4]
    if magic != FDT_MAGIC:
        raise DtbError(f"Invalid DTB magic number: 0x{magic:x}")

    pos = off_struct
    in_memory_node = False
    while True:
        token = _u32(blob, pos)
        pos += 4
        if token == FDT_BEGIN_NODE:
            name = _c_string(blob, pos)
            if name.startswith(b"memory"):
                in_memory_node = True
            pos = (pos + len(name) + 4) & ~3
        elif token == FDT_END_NODE:
            in_memory_node = False
        elif token == FDT_PROP:
            prop_len = _u32(blob, pos)
            name_off = _u32(blob, pos + 4)
            pos += 8
            prop_name = _c_string(blob, off_strings + name_off)
            if in_memory_node and prop_name == b"reg" and prop_len >= 16:
                try:
                    base, size = struct.unpack_from(">QQ", blob, pos)
                except struct.error:
                    raise DtbError("reg property runs past the blob") from None
                return MemoryInfo(base, size)
            pos = (pos + prop_len + 3) & ~3
        elif token == FDT_NOP:
            continue
        elif token == FDT_END:
            raise DtbError("Could not extract memory info from DTB")
        else:
            raise DtbError(f"unknown structure token 0x{token:x}")