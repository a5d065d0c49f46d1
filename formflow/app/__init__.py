"""Application composition layer.

Controllers in this package wire form view models, the action registry, the
navigation bridge and the session supervisor into runnable workflows.
"""
