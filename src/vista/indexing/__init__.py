"""Image discovery and indexing."""

from vista.indexing.candidates import discover_images
from vista.indexing.service import Indexer

__all__ = ["Indexer", "discover_images"]
