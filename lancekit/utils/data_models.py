"""
Core data models for lancekit.

This module defines the standard data structures that are passed between
the host registry, the embedders and the LanceDB pipelines.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Document:
    """
    A piece of content handed to an indexer or returned by a retriever.

    Attributes:
        content (Any): The primary content of the document. Usually text,
            but the pipelines fall back to a string form when it is not.
        metadata (Dict[str, Any]): JSON-serializable metadata about the
            content, such as the source path or a chunk index.
    """

    content: Any
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_data(
        cls, content: Any, metadata: Optional[Dict[str, Any]] = None
    ) -> "Document":
        """Builds a document from raw content and optional metadata."""
        return cls(content=content, metadata=dict(metadata or {}))

    @property
    def text(self) -> str:
        """The content when it is non-empty text, otherwise the document as a string."""
        if isinstance(self.content, str) and self.content:
            return self.content
        return str(self)


@dataclass
class Embedding:
    """A single vector produced by an embedder for a document."""

    embedding: List[float]
