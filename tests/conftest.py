"""
Configuration file for pytest.

This file adds the project's root directory to the Python path so that
pytest can find the 'lancekit' package without needing to install it,
and provides embedders shared by the test modules.
"""

import sys
from pathlib import Path

import pytest

# Add the project root directory to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from lancekit.components.embedders import BaseEmbedder  # noqa: E402
from lancekit.utils.data_models import Embedding  # noqa: E402


class KeyedEmbedder(BaseEmbedder):
    """Returns fixed vectors per document text, for predictable searches."""

    def __init__(self, vectors, default=None):
        self.vectors = vectors
        self.default = default
        self.calls = []

    def embed(self, document, options=None):
        self.calls.append(document.content)
        vectors = self.vectors.get(document.content, self.default)
        if vectors is None:
            return []
        if vectors and not isinstance(vectors[0], (list, tuple)):
            vectors = [vectors]
        return [Embedding(embedding=list(v)) for v in vectors]


@pytest.fixture
def keyed_embedder():
    return KeyedEmbedder(
        {
            "A": [1.0, 0.0, 0.0],
            "B": [0.0, 1.0, 0.0],
            "C": [0.0, 0.0, 1.0],
            "near A": [0.9, 0.1, 0.0],
        },
        default=[0.5, 0.5, 0.5],
    )


@pytest.fixture
def make_embedder():
    """Factory for KeyedEmbedder instances with custom vectors."""
    return KeyedEmbedder
