"""Simulated kernel physical memory management: buddy and first-fit page allocators, a device-tree memory probe and a kernel-style console."""

__version__ = "0.1.0"