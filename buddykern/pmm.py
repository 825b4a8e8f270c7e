"""Physical memory: the page descriptor array and its allocator."""

from __future__ import annotations

from typing import Callable, Sequence

from buddykern.memlayout import (
    DRAM_BASE,
    KERNBASE,
    KERNEL_BEGIN_VADDR,
    KERNTOP,
    PGSHIFT,
    PGSIZE,
    PG_RESERVED,
    PHYSICAL_MEMORY_OFFSET,
    Page,
    ppn,
    round_down,
    round_up,
)

__all__ = ["PhysicalMemory", "PAGE_DESCRIPTOR_SIZE"]

PAGE_DESCRIPTOR_SIZE = 40


class PhysicalMemory:
    """Lays out page descriptors after the kernel and hands free pages to a manager.

    ``manager_class`` is called with the page array and must provide
    ``init_memmap``, ``alloc_pages``, ``free_pages``, ``nr_free_pages`` and
    ``check``.  Pages are identified by their index in ``pages``.
    """

    def __init__(
        self,
        manager_class: Callable[[Sequence[Page]], object],
        mem_base: int,
        mem_size: int,
        kernel_end: int = KERNEL_BEGIN_VADDR,
    ) -> None:
        if mem_size == 0:
            raise ValueError("DTB memory info not available")
        self.va_pa_offset = PHYSICAL_MEMORY_OFFSET
        self.nbase = DRAM_BASE // PGSIZE
        self.mem_base = mem_base
        self.mem_size = mem_size
        mem_end = mem_base + mem_size

        maxpa = min(mem_end, KERNTOP)
        self.npage = maxpa // PGSIZE
        count = self.npage - self.nbase
        if count <= 0:
            raise ValueError("physical memory ends below the DRAM base")

        self.pages_vaddr = round_up(kernel_end, PGSIZE)
        self.pages = [Page(flags=1 << PG_RESERVED) for _ in range(count)]
        self.manager = manager_class(self.pages)

        freemem = self._paddr(self.pages_vaddr + PAGE_DESCRIPTOR_SIZE * count)
        self.free_begin = round_up(freemem, PGSIZE)
        self.free_end = round_down(mem_end, PGSIZE)
        if freemem < self.free_end:
            self.manager.init_memmap(
                self.pa2page(self.free_begin),
                (self.free_end - self.free_begin) // PGSIZE,
            )

    def _paddr(self, kva: int) -> int:
        if kva < KERNBASE:
            raise ValueError(f"PADDR called with invalid kva {kva:08x}")
        return kva - self.va_pa_offset

    def alloc_pages(self, n: int) -> int | None:
        """Allocate ``n`` contiguous pages; return the first index or None."""
        return self.manager.alloc_pages(n)

    def free_pages(self, base: int, n: int) -> None:
        """Free ``n`` pages starting at index ``base``."""
        self.manager.free_pages(base, n)

    def nr_free_pages(self) -> int:
        """Number of free pages."""
        return self.manager.nr_free_pages()

    def page2pa(self, page: int) -> int:
        """Physical address of the page at index ``page``."""
        return (page + self.nbase) << PGSHIFT

    def pa2page(self, pa: int) -> int:
        """Index of the page holding physical address ``pa``."""
        number = ppn(pa)
        if number >= self.npage or number < self.nbase:
            raise ValueError("pa2page called with invalid pa")
        return number - self.nbase

    def check(self) -> None:
        """Run the manager's self-check, then a large allocation test."""
        self.manager.check()
        large = self.alloc_pages(128)
        if large is None:
            raise AssertionError("allocation of 128 pages failed")
        self.free_pages(large, 128)