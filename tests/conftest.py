"""Shared pytest fixtures for all tests.

These fixtures properly clean up resources to prevent file descriptor leaks.
"""

import gc
import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

from vista.models import Candidate, QueryResult
from vista.vectorstore.store import VectorStore

DIMENSION = 4


@pytest.fixture(autouse=True)
def cleanup_after_test():
    """Clean up resources after each test to prevent file descriptor leaks.

    This runs automatically after every test to help garbage collect
    any lingering ChromaDB connections.
    """
    yield
    # Force garbage collection to release file handles
    gc.collect()


@pytest.fixture
def temp_vectorstore(tmp_path):
    """Create a temporary 4-dimensional vector store that cleans up properly."""
    index_path = tmp_path / "index"
    index_path.mkdir()
    store = VectorStore(str(index_path), collection_name="test_images", dimension=DIMENSION)
    yield store
    # Clean up to release file handles
    store.close()
    gc.collect()


@pytest.fixture
def image_dir(tmp_path) -> Path:
    """A folder holding a few fake image files and some non-images."""
    images = tmp_path / "images"
    (images / "nested").mkdir(parents=True)
    for name in ("beach.jpg", "city.PNG", "nested/forest.jpeg"):
        (images / name).write_bytes(b"\xff\xd8\xff fake image bytes")
    (images / "notes.txt").write_text("not an image")
    (images / "photo.gif").write_bytes(b"GIF89a")
    return images


def make_candidate(id: str, when: datetime | None = None) -> Candidate:
    """Build a candidate whose content_ref points nowhere in particular."""
    return Candidate(
        id=id,
        content_ref=f"/images/{id}",
        source_modified_at=when or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )


def make_result(id: str, similarity: float, description: str = "a photo") -> QueryResult:
    return QueryResult(id=id, description=description, similarity=similarity)


def set_mtime(path: Path, when: datetime) -> None:
    os.utime(path, (when.timestamp(), when.timestamp()))
