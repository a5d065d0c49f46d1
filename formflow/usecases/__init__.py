"""Use-case layer for resolving and dispatching form actions.

Each module works on domain objects and ports without performing transport
I/O directly, preserving MVVM + Hexagonal boundaries.
"""
