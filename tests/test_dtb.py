import struct

import pytest

from buddykern.dtb import (
    FDT_BEGIN_NODE,
    FDT_END,
    FDT_END_NODE,
    FDT_MAGIC,
    FDT_NOP,
    FDT_PROP,
    DtbError,
    MemoryInfo,
    extract_memory_info,
)

BASE = 0x80000000
SIZE = 0x8000000


def _pad(data):
    return data + b"\0" * (-len(data) % 4)


def begin(name):
    return struct.pack(">I", FDT_BEGIN_NODE) + _pad(name.encode() + b"\0")


def prop(name_off, data):
    return struct.pack(">III", FDT_PROP, len(data), name_off) + _pad(data)


def end_node():
    return struct.pack(">I", FDT_END_NODE)


def nop():
    return struct.pack(">I", FDT_NOP)


def end():
    return struct.pack(">I", FDT_END)


STRINGS = b"compatible\0reg\0"
COMPATIBLE_OFF = 0
REG_OFF = 11


def build(structure, strings=STRINGS, magic=FDT_MAGIC):
    header_size = 40
    off_struct = header_size
    off_strings = header_size + len(structure)
    total = off_strings + len(strings)
    header = struct.pack(
        ">10I",
        magic,
        total,
        off_struct,
        off_strings,
        0,
        17,
        16,
        0,
        len(strings),
        len(structure),
    )
    return header + structure + strings


def reg(base, size):
    return struct.pack(">QQ", base, size)


def test_memory_node_found():
    structure = (
        begin("")
        + prop(COMPATIBLE_OFF, b"riscv-virtio\0")
        + begin("memory@80000000")
        + prop(REG_OFF, reg(BASE, SIZE))
        + end_node()
        + end_node()
        + end()
    )
    info = extract_memory_info(build(structure))
    assert info == MemoryInfo(BASE, SIZE)


def test_end_address():
    info = MemoryInfo(BASE, SIZE)
    assert info.end == 0x87FFFFFF


def test_bad_magic():
    structure = begin("") + end_node() + end()
    with pytest.raises(DtbError):
        extract_memory_info(build(structure, magic=0x12345678))


def test_short_blob():
    with pytest.raises(DtbError):
        extract_memory_info(b"\xd0\x0d\xfe\xed")


def test_no_memory_node():
    structure = begin("") + prop(COMPATIBLE_OFF, b"x\0") + end_node() + end()
    with pytest.raises(DtbError):
        extract_memory_info(build(structure))


def test_reg_outside_memory_node_is_ignored():
    structure = (
        begin("")
        + begin("soc")
        + prop(REG_OFF, reg(0x1000, 0x2000))
        + end_node()
        + begin("memory")
        + prop(REG_OFF, reg(BASE, SIZE))
        + end_node()
        + end_node()
        + end()
    )
    assert extract_memory_info(build(structure)) == MemoryInfo(BASE, SIZE)


def test_memory_flag_cleared_at_end_of_node():
    structure = (
        begin("")
        + begin("memory")
        + end_node()
        + begin("cpus")
        + prop(REG_OFF, reg(0x1000, 0x2000))
        + end_node()
        + end_node()
        + end()
    )
    with pytest.raises(DtbError):
        extract_memory_info(build(structure))


def test_short_reg_is_skipped():
    structure = (
        begin("memory")
        + prop(REG_OFF, struct.pack(">Q", BASE))
        + end_node()
        + end()
    )
    with pytest.raises(DtbError):
        extract_memory_info(build(structure))


def test_nop_tokens_are_skipped():
    structure = (
        nop()
        + begin("memory")
        + nop()
        + prop(REG_OFF, reg(BASE, SIZE))
        + end_node()
        + end()
    )
    assert extract_memory_info(build(structure)) == MemoryInfo(BASE, SIZE)


def test_unknown_token_is_an_error():
    structure = struct.pack(">I", 0x7) + end()
    with pytest.raises(DtbError):
        extract_memory_info(build(structure))


def test_truncated_structure_is_an_error():
    structure = begin("memory")
    with pytest.raises(DtbError):
        extract_memory_info(build(structure, strings=b""))