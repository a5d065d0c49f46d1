"""Adapter package for external I/O implementations.

Purpose:
    Collect concrete action handlers (REST auth/events), the HTTP transport
    they share, and credential persistence.

Dependencies:
    Individual submodules depend on ``requests``, filesystem APIs, and domain
    protocol definitions.

Call context:
    Imported by ``formflow.app.main`` for runtime wiring and by tests.
"""
