# buddykern

`buddykern` simulates the physical memory management of a small teaching
kernel in plain Python. It lays out page descriptors for a memory range, hands
the free pages to a page allocator and runs the allocator's self-checks. Two
allocators are included: a buddy system and a first-fit free list.

## Modules

- `buddykern.buddy_pmm`
  - `BuddyManager` is a buddy allocator. It keeps the largest free block under
    each node of an implicit binary tree. Storage for the tree is charged
    against the managed region, so a few pages of every region are used by
    the tree itself.
  - `fix_size(size)` returns the smallest power of two that is not below
    `size`. Zero maps to 1.
- `buddykern.default_pmm`
  - `FirstFitManager` keeps free blocks in address order, serves each request
    from the first block that is large enough, and merges a freed block with
    the free blocks next to it.
- `buddykern.pmm`
  - `PhysicalMemory(manager_class, mem_base, mem_size, kernel_end)` places one
    `Page` descriptor per page after the kernel image. It gives every page
    beyond the descriptors to the manager.
  - It offers `alloc_pages`, `free_pages`, `nr_free_pages`, `page2pa`,
    `pa2page` and `check`.
  - Pages are identified by their index in `memory.pages`.
  - `check()` runs the manager's own check. It then allocates 128 pages and
    frees them again.
- `buddykern.memlayout`
  - The `Page` descriptor, with `ref`, `flags`, `block_size` and the flag
    properties `reserved` and `free_head`.
  - Layout and page-table constants.
  - The helpers `round_down`, `round_up` and `ppn`.
- `buddykern.dtb`
  - `extract_memory_info(blob)` returns the base and size from the `reg`
    property of the first `memory` node of a flattened device-tree blob, as a
    `MemoryInfo` with `base`, `size` and `end`.
  - It raises `DtbError` when the magic number is wrong, when the blob is
    malformed, or when the blob has no such property.
- `buddykern.printfmt`
  - `format(fmt, *args)` implements the kernel's printf dialect:
    - `%c`, `%s`, `%d`, `%u`, `%o`, `%x` and `%p`;
    - widths and zero padding;
    - `l` and `ll`;
    - `%e`, which turns an `ErrorCode` into its message.
  - `snprintf(size, fmt, *args)` returns the text that fits in a buffer of
    `size` bytes and the full length. It raises `ValueError` when `size` is
    below 1.
- `buddykern.strings`
  - `strtol(s, base)` returns the value and the index after the digits.
  - `strcmp`, `strncmp` and `strfind` work with NUL-terminated semantics.
- `buddykern.console`
  - `Console(output, input)` works over any text streams. It defaults to
    standard output and standard input.
  - It offers `putc`, `cprintf`, `cputs`, `getchar`, `readline` (with echo
    and backspace), `warn` and `panic`.
  - `panic` prints its message only the first time and raises `KernelPanic`
    every time.

## Installing

```
pip install .
```

## Command line

```
buddykern
```

This command runs the simulated boot sequence:

1. It prints the banner and the kernel symbol information.
2. It sets up `PhysicalMemory` with the chosen manager.
3. It runs `check()`.
4. It prints the number of free pages.

It exits with 0 on success. It exits with 1 when set-up or a check fails, and
prints a kernel panic message first.

Options:

- `--manager {buddy,default}`: the allocator to use. The default is `buddy`.
- `--mem-base`, `--mem-size`: the memory range. The defaults are `0x80000000`
  and `0x8000000`. Decimal and `0x` forms are accepted.
- `--kernel-end`: the virtual address where the kernel image ends. The
  default is `0xFFFFFFFFC0200000`.
- `--dtb PATH`: read the memory range from a device-tree blob instead. If the
  blob yields no memory range, set-up fails.
- `--hartid N`: the hart id to report while reading the blob.

## Library use

```python
from buddykern.buddy_pmm import BuddyManager
from buddykern.pmm import PhysicalMemory

memory = PhysicalMemory(BuddyManager, 0x80000000, 0x8000000, 0xFFFFFFFFC0220000)
block = memory.alloc_pages(4)
print(hex(memory.page2pa(block)), memory.nr_free_pages())
memory.free_pages(block, 4)
memory.check()
```

`alloc_pages` returns `None` when no suitable run of pages is free. The
buddy allocator rounds every request up to a power of two.

## What it does not do

Nothing here runs on hardware. There is no virtual memory and no page-table
setup, and no interrupts, processes or timer. Memory is only modelled by
`Page` descriptors, so an allocated page holds no data. The console reads and
writes Python text streams.

## Tests

```
pip install .[test]
pytest
```