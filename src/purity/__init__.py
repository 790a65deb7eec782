"""Purity test stats service.

Collects anonymous purity-test submissions and serves global aggregate
statistics over them.
"""

__version__ = "0.1.0"
