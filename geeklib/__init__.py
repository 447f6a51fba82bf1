"""A buffer-pool allocator and heap, PFAT disk images, pool dumps and wc-style counting."""

__version__ = "0.1.0"