"""Concrete adapters for the interfaces in ``contextkeeper.interfaces``."""
