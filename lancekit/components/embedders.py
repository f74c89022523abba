"""
Embedding components for lancekit.

This module contains the embedder collaborators used by the LanceDB
indexer and retriever. An embedder turns one document into one or more
vector embeddings.
"""

from abc import ABC, abstractmethod
import hashlib
import logging
import os
from typing import Any, Dict, List, Optional

import numpy as np
from dotenv import load_dotenv
from langchain_text_splitters import RecursiveCharacterTextSplitter
from openai import OpenAI
from sentence_transformers import SentenceTransformer

from ..utils.data_models import Document, Embedding

load_dotenv()

logger = logging.getLogger(__name__)


def _to_embeddings(vectors: np.ndarray) -> List[Embedding]:
    return [Embedding(embedding=np.asarray(v, dtype=float).tolist()) for v in vectors]


class BaseEmbedder(ABC):
    """Abstract base class for all embedder components."""

    @abstractmethod
    def embed(
        self, document: Document, options: Optional[Dict[str, Any]] = None
    ) -> List[Embedding]:
        """
        Embeds a single document.

        Args:
            document (Document): The document to embed.
            options (Optional[Dict[str, Any]]): Embedder-specific options.

        Returns:
            List[Embedding]: Zero or more embeddings for the document. An
                embedder that splits its input internally returns one
                embedding per piece.
        """
        pass


class SentenceTransformerEmbedder(BaseEmbedder):
    """
    An embedder that uses the sentence-transformers library from Hugging Face.

    This class handles loading a pre-trained model and using it to encode
    a document's text into a dense vector embedding.
    """

    def __init__(self, model_name: str = "sentence-transformers/all-MiniLM-L6-v2"):
        """
        Initializes the SentenceTransformerEmbedder by loading a model.

        Args:
            model_name (str): The name of the sentence-transformer model to load
                              from the Hugging Face Hub.
        """
        self.model_name = model_name
        self.model = self._load_model()

    def _load_model(self) -> SentenceTransformer:
        """Loads the SentenceTransformer model and handles potential errors."""
        logger.debug(f"Loading SentenceTransformer model: '{self.model_name}'")
        try:
            model = SentenceTransformer(self.model_name)
            logger.info(
                f"SentenceTransformer model '{self.model_name}' loaded successfully."
            )
            return model
        except Exception:
            logger.error(
                f"Failed to load SentenceTransformer model '{self.model_name}'. "
                f"Please ensure the model name is correct and you have an internet connection.",
                exc_info=True,
            )
            raise

    def embed(
        self, document: Document, options: Optional[Dict[str, Any]] = None
    ) -> List[Embedding]:
        """Encodes the document text using the pre-loaded model."""
        logger.debug(f"Embedding document using '{self.model_name}'...")
        try:
            vectors = self.model.encode(
                [document.text], show_progress_bar=False, **(options or {})
            )
            return _to_embeddings(vectors)
        except Exception as e:
            logger.error(
                f"An error occurred during the embedding process: {e}",
                exc_info=True,
            )
            raise


class OpenAIEmbedder(BaseEmbedder):
    """
    An embedder that uses the OpenAI API to generate embeddings.
    """

    def __init__(self, model_name: str = "text-embedding-3-small", api_key: str = None):
        """
        Initializes the OpenAIEmbedder.

        Args:
            model_name (str): The name of the OpenAI model to use for embedding.
            api_key (str): The API key to authenticate with the OpenAI API.
        """
        self.model_name = model_name
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError(
                "You need an OpenAI API key. Pass it as the 'api_key' argument or set the 'OPENAI_API_KEY' environment variable."
            )
        self.client = OpenAI(api_key=self.api_key)
        logger.info(f"Initialized OpenAIEmbedder with model '{self.model_name}'.")

    def embed(
        self, document: Document, options: Optional[Dict[str, Any]] = None
    ) -> List[Embedding]:
        """Embeds the document text using the OpenAI API."""
        try:
            response = self.client.embeddings.create(
                input=[document.text], model=self.model_name, **(options or {})
            )
            return [Embedding(embedding=list(item.embedding)) for item in response.data]
        except Exception as e:
            logger.error(f"Got error while embedding: {e}", exc_info=True)
            raise


class HashEmbedder(BaseEmbedder):
    """
    Deterministic hash-based embedder.

    Produces reproducible vectors from the document text without loading
    a model, which is useful for tests and offline smoke runs. Similar
    texts do not get similar vectors.
    """

    def __init__(self, dimension: int = 16):
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self.dimension = dimension

    def embed(
        self, document: Document, options: Optional[Dict[str, Any]] = None
    ) -> List[Embedding]:
        vector = []
        counter = 0
        while len(vector) < self.dimension:
            digest = hashlib.sha256(f"{counter}:{document.text}".encode("utf-8")).digest()
            for i in range(0, len(digest), 4):
                value = int.from_bytes(digest[i : i + 4], "big")
                # Map to [-1, 1]
                vector.append((value / 2**32) * 2 - 1)
            counter += 1
        return [Embedding(embedding=vector[: self.dimension])]


class ChunkingEmbedder(BaseEmbedder):
    """
    Splits a document into chunks and embeds each chunk separately.

    Wraps another embedder and returns one embedding per chunk, in chunk
    order. Rows built from them keep the whole document text and metadata.
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        chunk_size: int = 500,
        chunk_overlap: int = 50,
    ):
        """
        Args:
            embedder (BaseEmbedder): The embedder applied to each chunk.
            chunk_size (int): The maximum size of each chunk (measured by length).
            chunk_overlap (int): The number of characters to overlap between chunks.
        """
        self.embedder = embedder
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._text_splitter = RecursiveCharacterTextSplitter(
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
            length_function=len,
        )

    def embed(
        self, document: Document, options: Optional[Dict[str, Any]] = None
    ) -> List[Embedding]:
        chunks = self._text_splitter.split_text(document.text)
        logger.debug(f"Split document into {len(chunks)} chunks.")

        embeddings = []
        for chunk in chunks:
            chunk_doc = Document.from_data(chunk, document.metadata)
            embeddings.extend(self.embedder.embed(chunk_doc, options))
        return embeddings
