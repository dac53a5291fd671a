"""Vector store module for similarity search over image descriptions."""

from vista.vectorstore.store import VectorStore

__all__ = ["VectorStore"]
