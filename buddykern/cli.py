"""Boot sequence: read the memory layout, set up the page allocator and self-check."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from buddykern.buddy_pmm import BuddyManager
from buddykern.console import Console
from buddykern.default_pmm import FirstFitManager
from buddykern.dtb import DtbError, extract_memory_info
from buddykern.memlayout import DRAM_BASE, KERNEL_BEGIN_VADDR, PHYSICAL_MEMORY_END
from buddykern.pmm import PhysicalMemory

__all__ = ["main"]

_MANAGERS = {"buddy": BuddyManager, "default": FirstFitManager}


def _number(text: str) -> int:
    return int(text, 0)


def _dtb_init(console: Console, path: Path, hartid: int) -> tuple[int, int]:
    console.cprintf("DTB Init\n")
    console.cprintf("HartID: %ld\n", hartid)
    console.cprintf("DTB File: %s\n", str(path))
    try:
        info = extract_memory_info(path.read_bytes())
    except DtbError as exc:
        if "magic" in str(exc):
            console.cprintf("Error: %s\n", str(exc))
            return 0, 0
        console.cprintf("Warning: Could not extract memory info from DTB\n")
        console.cprintf("DTB init completed\n")
        return 0, 0
    console.cprintf("Physical Memory from DTB:\n")
    console.cprintf("  Base: 0x%016lx\n", info.base)
    console.cprintf("  Size: 0x%016lx (%ld MB)\n", info.size, info.size // (1024 * 1024))
    console.cprintf("  End:  0x%016lx\n", info.end)
    console.cprintf("DTB init completed\n")
    return info.base, info.size


def _print_kerninfo(console: Console, kernel_end: int) -> None:
    console.cprintf("Special kernel symbols:\n")
    console.cprintf("  entry  0x%016lx (virtual)\n", KERNEL_BEGIN_VADDR)
    console.cprintf("  end    0x%016lx (virtual)\n", kernel_end)
    console.cprintf(
        "Kernel executable memory footprint: %dKB\n",
        (kernel_end - KERNEL_BEGIN_VADDR + 1023) // 1024,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Run the boot sequence; return 0 on success and 1 on a kernel panic."""
    parser = argparse.ArgumentParser(
        prog="buddykern", description="Set up and self-check physical page allocation."
    )
    parser.add_argument("--dtb", type=Path, help="device tree blob describing memory")
    parser.add_argument("--hartid", type=_number, default=0)
    parser.add_argument("--mem-base", type=_number, default=DRAM_BASE)
    parser.add_argument("--mem-size", type=_number, default=PHYSICAL_MEMORY_END - DRAM_BASE)
    parser.add_argument("--kernel-end", type=_number, default=KERNEL_BEGIN_VADDR)
    parser.add_argument("--manager", choices=sorted(_MANAGERS), default="buddy")
    args = parser.parse_args(argv)

    console = Console()
    mem_base, mem_size = args.mem_base, args.mem_size
    if args.dtb is not None:
        mem_base, mem_size = _dtb_init(console, args.dtb, args.hartid)

    console.cputs("(THU.CST) os is loading ...")
    _print_kerninfo(console, args.kernel_end)

    manager_class = _MANAGERS[args.manager]
    console.cprintf("memory management: %s\n", manager_class.name)
    try:
        memory = PhysicalMemory(manager_class, mem_base, mem_size, args.kernel_end)
        console.cprintf("physcial memory map:\n")
        console.cprintf(
            "  memory: 0x%016lx, [0x%016lx, 0x%016lx].\n",
            mem_size,
            mem_base,
            mem_base + mem_size - 1,
        )
        memory.check()
    except (ValueError, MemoryError, AssertionError) as exc:
        console.cprintf("kernel panic:\n    %s\n", str(exc))
        return 1
    console.cprintf("check_alloc_page() succeeded!\n")
    console.cprintf("free pages: %d\n", memory.nr_free_pages())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())