"""Inventory a cloud account through its vendor CLI and print it as a tree."""

__version__ = "0.1.0"
