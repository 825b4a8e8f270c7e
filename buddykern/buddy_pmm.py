"""Buddy-system physical page allocator driven by a tree of free block sizes."""

from __future__ import annotations

import logging
from typing import Sequence

from buddykern.memlayout import PGSIZE, Page

__all__ = ["fix_size", "BuddyManager"]

log = logging.getLogger(__name__)

_HEADER_BYTES = 4
_NODE_BYTES = 4


def fix_size(size: int) -> int:
    """Smallest power of two not below ``size``; 0 maps to 1."""
    if size < 0:
        raise ValueError("size must not be negative")
    if size == 0:
        return 1
    return 1 << (size - 1).bit_length()


def _parent(index: int) -> int:
    return (index + 1) // 2 - 1


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


class BuddyManager:
    """Allocates power-of-two runs of pages from a buddy tree.

    The tree is kept as an implicit binary heap: each node records the
    largest free block below it.  Its storage is charged against the managed
    region, so a few pages of every region go to the tree itself.
    """

    name = "buddy_pmm_manager"

    def __init__(self, pages: Sequence[Page]) -> None:
        self.pages = pages
        self._base: int | None = None
        self._size = 0
        self._longest: list[int] = []
        self._nr_free = 0

    @property
    def size(self) -> int:
        """Number of leaves in the buddy tree."""
        return self._size

    @property
    def largest_block(self) -> int:
        """Size recorded at the root of the tree (0 before initialisation)."""
        return self._longest[0] if self._base is not None and self._longest else 0

    def init_memmap(self, base: int, n: int) -> None:
        """Take over the ``n`` reserved pages starting at index ``base``."""
        if n <= 0:
            raise ValueError("init_memmap needs at least one page")
        region = self.pages[base:base + n]
        if len(region) != n:
            raise ValueError("init_memmap region lies outside the page array")
        if not all(page.reserved for page in region):
            raise ValueError("init_memmap region holds a page that is not reserved")
        for page in region:
            page.flags = 0
            page.free_head = True
            page.block_size = 0
            page.ref = 0

        self._base = base
        actual = fix_size(n)
        tree_bytes = _HEADER_BYTES + _NODE_BYTES * (2 * actual - 1)
        tree_pages = -(-tree_bytes // PGSIZE)
        log.debug("managing %d pages as %d, tree needs %d page(s)", n, actual, tree_pages)
        if actual < tree_pages:
            raise MemoryError("not enough memory to hold the buddy tree")

        size = actual - tree_pages
        self._size = size
        self._nr_free = size

        longest = [0] * max(2 * size - 1, 1)
        for i in range(size):
            longest[size - 1 + i] = 1
        for i in range(size - 2, -1, -1):
            longest[i] = longest[2 * i + 1] + longest[2 * i + 2]
        self._longest = longest

    def _offset_of(self, index: int, block: int) -> int:
        if index >= self._size - 1:
            return index - (self._size - 1)
        offset = 0
        while index > 0:
            if index % 2 == 0:
                offset += block
            index = _parent(index)
            block *= 2
        return offset

    def alloc_pages(self, n: int) -> int | None:
        """Allocate at least ``n`` pages; return the first index or None."""
        if n <= 0:
            raise ValueError("alloc_pages needs at least one page")
        if self._base is None or n > self._nr_free:
            return None
        alloc_size = fix_size(n)
        tree = self._longest
        if tree[0] < alloc_size:
            log.debug("no run of %d pages, largest is %d", alloc_size, tree[0])
            return None

        index = 0
        node_size = self._size
        while node_size > alloc_size:
            left = 2 * index + 1
            index = left if tree[left] >= alloc_size else left + 1
            node_size //= 2

        if tree[index] < alloc_size:
            return None
        tree[index] = 0

        offset = self._offset_of(index, alloc_size)
        if offset >= self._size:
            log.debug("offset %d outside [0, %d)", offset, self._size)
            return None

        i = index
        while i > 0:
            i = _parent(i)
            tree[i] = max(tree[2 * i + 1], tree[2 * i + 2])

        start = self._base + offset
        for page in self.pages[start:start + alloc_size]:
            page.free_head = False
            page.ref = 1
        self._nr_free -= alloc_size
        log.debug("allocated %d page(s) at offset %d", alloc_size, offset)
        return start

    def free_pages(self, base: int, n: int) -> None:
        """Return the pages allocated at index ``base`` for a request of ``n``."""
        if n <= 0:
            raise ValueError("free_pages needs at least one page")
        if self._base is None:
            raise ValueError("free_pages before init_memmap")
        offset = base - self._base
        free_size = fix_size(n)
        if not 0 <= offset < self._size:
            raise ValueError("free_pages offset out of range")

        tree = self._longest
        index = offset + self._size - 1
        tree[index] = free_size
        i = index
        while i > 0:
            i = _parent(i)
            left, right = tree[2 * i + 1], tree[2 * i + 2]
            if left > 0 and right > 0 and left == right:
                tree[i] = left + right
            else:
                tree[i] = max(left, right)
                break

        for page in self.pages[base:base + free_size]:
            page.free_head = True
            page.ref = 0
        self._nr_free += free_size
        log.debug("freed %d page(s) at offset %d", free_size, offset)

    def nr_free_pages(self) -> int:
        """Number of free pages."""
        return self._nr_free

    def check(self) -> None:
        """Exercise single and multi-page allocation; raise AssertionError on failure."""
        singles = [self.alloc_pages(1) for _ in range(3)]
        _require(all(p is not None for p in singles), "single page allocation failed")
        _require(len(set(singles)) == 3, "the same page was allocated twice")
        for p in singles:
            assert p is not None
            self.free_pages(p, 1)

        for count in (2, 4, 8):
            block = self.alloc_pages(count)
            if block is not None:
                self.free_pages(block, count)