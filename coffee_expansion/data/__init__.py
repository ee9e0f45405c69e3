"""
Snapshot Data Module
"""
from .records import City, Customer, Product, Sale
from .snapshot import Snapshot, conform_frame
from .generators import SnapshotGenerator

__all__ = [
    "City",
    "Customer",
    "Product",
    "Sale",
    "Snapshot",
    "conform_frame",
    "SnapshotGenerator",
]
