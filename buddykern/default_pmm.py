"""First-fit physical page allocator over an address-ordered free list."""

from __future__ import annotations

import bisect
from contextlib import contextmanager
from typing import Iterator, Sequence

from buddykern.memlayout import Page

__all__ = ["FirstFitManager"]


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


class FirstFitManager:
    """Allocates runs of pages with the first-fit strategy.

    Pages are addressed by their index in ``pages``.  Free blocks are kept
    in address order; each block's head page records the block length and
    carries the free-head flag.  Freed blocks are merged with adjacent free
    neighbours.
    """

    name = "default_pmm_manager"

    def __init__(self, pages: Sequence[Page]) -> None:
        self.pages = pages
        self._free: list[int] = []
        self._nr_free = 0

    def init_memmap(self, base: int, n: int) -> None:
        """Hand the ``n`` reserved pages starting at ``base`` to the allocator."""
        if n <= 0:
            raise ValueError("init_memmap needs at least one page")
        region = self.pages[base:base + n]
        if len(region) != n:
            raise ValueError("init_memmap region lies outside the page array")
        if not all(page.reserved for page in region):
            raise ValueError("init_memmap region holds a page that is not reserved")
        for page in region:
            page.flags = 0
            page.block_size = 0
            page.ref = 0
        head = self.pages[base]
        head.block_size = n
        head.free_head = True
        self._nr_free += n
        bisect.insort(self._free, base)

    def alloc_pages(self, n: int) -> int | None:
        """Allocate ``n`` contiguous pages; return the first index or None."""
        if n <= 0:
            raise ValueError("alloc_pages needs at least one page")
        if n > self._nr_free:
            return None
        for pos, index in enumerate(self._free):
            if self.pages[index].block_size >= n:
                break
        else:
            return None

        head = self.pages[index]
        del self._free[pos]
        if head.block_size > n:
            rest = self.pages[index + n]
            rest.block_size = head.block_size - n
            rest.free_head = True
            self._free.insert(pos, index + n)
        self._nr_free -= n
        head.free_head = False
        return index

    def free_pages(self, base: int, n: int) -> None:
        """Return ``n`` pages starting at ``base`` and merge with neighbours."""
        if n <= 0:
            raise ValueError("free_pages needs at least one page")
        region = self.pages[base:base + n]
        if len(region) != n:
            raise ValueError("free_pages region lies outside the page array")
        if any(page.reserved or page.free_head for page in region):
            raise ValueError("free_pages region holds a reserved or free page")
        for page in region:
            page.flags = 0
            page.ref = 0
        head = self.pages[base]
        head.block_size = n
        head.free_head = True
        self._nr_free += n

        pos = bisect.bisect_left(self._free, base)
        self._free.insert(pos, base)

        if pos > 0:
            prev = self._free[pos - 1]
            prev_page = self.pages[prev]
            if prev + prev_page.block_size == base:
                prev_page.block_size += head.block_size
                head.free_head = False
                del self._free[pos]
                base, head = prev, prev_page
                pos -= 1

        if pos + 1 < len(self._free):
            nxt = self._free[pos + 1]
            if base + head.block_size == nxt:
                next_page = self.pages[nxt]
                head.block_size += next_page.block_size
                next_page.free_head = False
                del self._free[pos + 1]

    def nr_free_pages(self) -> int:
        """Number of free pages."""
        return self._nr_free

    @contextmanager
    def _detached(self) -> Iterator[None]:
        saved_free, saved_nr = self._free, self._nr_free
        self._free, self._nr_free = [], 0
        try:
            yield
        finally:
            self._free, self._nr_free = saved_free, saved_nr

    def _alloc_required(self, n: int) -> int:
        index = self.alloc_pages(n)
        _require(index is not None, f"allocation of {n} page(s) failed")
        assert index is not None
        return index

    def _basic_check(self) -> None:
        p0 = self._alloc_required(1)
        p1 = self._alloc_required(1)
        p2 = self._alloc_required(1)
        _require(len({p0, p1, p2}) == 3, "the same page was allocated twice")
        _require(
            all(self.pages[i].ref == 0 for i in (p0, p1, p2)),
            "freshly allocated page has references",
        )
        _require(
            all(i < len(self.pages) for i in (p0, p1, p2)),
            "allocated page lies outside memory",
        )

        with self._detached():
            _require(not self._free, "detached free list is not empty")
            _require(self.alloc_pages(1) is None, "allocation from empty list")
            for index in (p0, p1, p2):
                self.free_pages(index, 1)
            _require(self._nr_free == 3, "free count wrong after three frees")

            p0 = self._alloc_required(1)
            p1 = self._alloc_required(1)
            p2 = self._alloc_required(1)
            _require(self.alloc_pages(1) is None, "allocation beyond free pages")

            self.free_pages(p0, 1)
            _require(bool(self._free), "free list empty after a free")
            p = self.alloc_pages(1)
            _require(p == p0, "freed page was not reused")
            _require(self.alloc_pages(1) is None, "allocation beyond free pages")
            _require(self._nr_free == 0, "free count not zero")

        for index in (p0, p1, p2):
            self.free_pages(index, 1)

    def check(self) -> None:
        """Exercise the allocator and verify its results.

        Raises AssertionError on the first wrong result; on success the
        allocator is left as it was found.
        """
        count = len(self._free)
        total = 0
        for index in self._free:
            page = self.pages[index]
            _require(page.free_head, "free list holds a page that is not a block head")
            total += page.block_size
        _require(total == self.nr_free_pages(), "block sizes do not sum to free count")

        self._basic_check()

        p0 = self._alloc_required(5)
        _require(not self.pages[p0].free_head, "allocated block still marked free")

        with self._detached():
            _require(self.alloc_pages(1) is None, "allocation from empty list")

            self.free_pages(p0 + 2, 3)
            _require(self.alloc_pages(4) is None, "allocated more than is free")
            _require(
                self.pages[p0 + 2].free_head and self.pages[p0 + 2].block_size == 3,
                "freed block head is wrong",
            )
            p1 = self._alloc_required(3)
            _require(self.alloc_pages(1) is None, "allocation beyond free pages")
            _require(p0 + 2 == p1, "first fit did not reuse the freed block")

            p2 = p0 + 1
            self.free_pages(p0, 1)
            self.free_pages(p1, 3)
            _require(
                self.pages[p0].free_head and self.pages[p0].block_size == 1,
                "single freed page head is wrong",
            )
            _require(
                self.pages[p1].free_head and self.pages[p1].block_size == 3,
                "three-page block head is wrong",
            )

            p0 = self._alloc_required(1)
            _require(p0 == p2 - 1, "first fit did not pick the lowest block")
            self.free_pages(p0, 1)
            p0 = self._alloc_required(2)
            _require(p0 == p2 + 1, "first fit did not pick the first large block")

            self.free_pages(p0, 2)
            self.free_pages(p2, 1)

            p0 = self._alloc_required(5)
            _require(self.alloc_pages(1) is None, "allocation beyond free pages")
            _require(self._nr_free == 0, "free count not zero")

        self.free_pages(p0, 5)

        for index in self._free:
            count -= 1
            total -= self.pages[index].block_size
        _require(count == 0, "number of free blocks changed")
        _require(total == 0, "number of free pages changed")