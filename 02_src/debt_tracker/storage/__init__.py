"""Storage module."""

from .storage import ILedgerStore, Storage

__all__ = ["ILedgerStore", "Storage"]
