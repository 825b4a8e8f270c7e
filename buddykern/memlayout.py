"""Physical memory layout constants, page descriptors and rounding helpers."""

from __future__ import annotations

from dataclasses import dataclass

PGSIZE = 4096
PGSHIFT = 12

KERNBASE = 0xFFFFFFFFC0200000
KMEMSIZE = 0x7E00000
KERNTOP = KERNBASE + KMEMSIZE

PHYSICAL_MEMORY_END = 0x88000000
PHYSICAL_MEMORY_OFFSET = 0xFFFFFFFF40000000
KERNEL_BEGIN_PADDR = 0x80200000
KERNEL_BEGIN_VADDR = 0xFFFFFFFFC0200000
DRAM_BASE = 0x80000000

KSTACKPAGE = 2
KSTACKSIZE = KSTACKPAGE * PGSIZE

SV39_NENTRY = 512
SV39_VPN0SHIFT = 12
SV39_VPN1SHIFT = 21
SV39_VPN2SHIFT = 30
SV39_PTE_PPN_SHIFT = 10

PTE_V = 0x001
PTE_R = 0x002
PTE_W = 0x004
PTE_X = 0x008
PTE_U = 0x010
PTE_G = 0x020
PTE_A = 0x040
PTE_D = 0x080
PTE_SOFT = 0x300

PAGE_TABLE_DIR = PTE_V
READ_ONLY = PTE_R | PTE_V
READ_WRITE = PTE_R | PTE_W | PTE_V
EXEC_ONLY = PTE_X | PTE_V
READ_EXEC = PTE_R | PTE_X | PTE_V
READ_WRITE_EXEC = PTE_R | PTE_W | PTE_X | PTE_V
PTE_USER = PTE_R | PTE_W | PTE_X | PTE_U | PTE_V

PG_RESERVED = 0
PG_PROPERTY = 1


def round_down(a: int, n: int) -> int:
    """Round ``a`` down to the nearest multiple of ``n``."""
    return a - a % n


def round_up(a: int, n: int) -> int:
    """Round ``a`` up to the nearest multiple of ``n``."""
    return round_down(a + n - 1, n)


def ppn(address: int) -> int:
    """Physical or virtual page number of an address."""
    return address >> PGSHIFT


def _flag_property(bit: int, doc: str) -> property:
    mask = 1 << bit

    def getter(self: "Page") -> bool:
        return bool(self.flags & mask)

    def setter(self: "Page", value: bool) -> None:
        if value:
            self.flags |= mask
        else:
            self.flags &= ~mask

    return property(getter, setter, doc=doc)


@dataclass(eq=False)
class Page:
    """Descriptor of one physical page frame.

    ``block_size`` is the number of free pages in the block headed by this
    page; pages compare by identity.
    """

    ref: int = 0
    flags: int = 0
    block_size: int = 0

    reserved = _flag_property(
        PG_RESERVED, "The page is reserved for the kernel."
    )
    free_head = _flag_property(
        PG_PROPERTY, "The page heads a free block usable by the allocator."
    )