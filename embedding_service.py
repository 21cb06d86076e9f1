"""
Client for the text-embedding model served by Ollama.

One blocking POST per call; the session retries transient transport failures
a bounded number of times and every request carries a timeout.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from errors import InvalidInput, ServiceError

logger = logging.getLogger(__name__)

EMBED_PATH = "/api/embed"


@dataclass(frozen=True)
class EmbeddingConfig:
    model_id: str = "all-minilm:l6-v2"
    endpoint_url: str = "http://localhost:11434"
    timeout: float = 30.0
    max_retries: int = 3
    # When set, responses of any other length are rejected.
    dimension: Optional[int] = None

    @classmethod
    def from_mapping(cls, mapping):
        """Build from a Flask config (or any dict using the config.py key names)."""
        return cls(
            model_id=mapping.get("EMBEDDING_MODEL", cls.model_id),
            endpoint_url=mapping.get("OLLAMA_URL", cls.endpoint_url),
            timeout=float(mapping.get("EMBEDDING_TIMEOUT", cls.timeout)),
            max_retries=int(mapping.get("EMBEDDING_MAX_RETRIES", cls.max_retries)),
            dimension=mapping.get("EMBEDDING_DIMENSION"),
        )


def build_session(max_retries):
    session = requests.Session()
    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=1,
        status_forcelist=[502, 503, 504],
        allowed_methods=frozenset(["POST"]),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def build_embedding_text(title, description=None, genre_names=()):
    """Title, description and comma-joined genres, one per line, skipping blanks."""
    genres = ", ".join(name.strip() for name in genre_names if name and name.strip())
    parts = [title, description, genres]
    return "\n".join(part.strip() for part in parts if part and part.strip())


class EmbeddingService:
    def __init__(self, config=None, session=None):
        self.config = config or EmbeddingConfig()
        self.session = session or build_session(self.config.max_retries)

    @property
    def url(self):
        return self.config.endpoint_url.rstrip("/") + EMBED_PATH

    def embed(self, text) -> List[float]:
        """Return the embedding vector for ``text``.

        Raises InvalidInput for blank or missing text and ServiceError when the
        service cannot be reached, answers with a non-2xx status, or sends a
        body without a usable ``embeddings`` field.
        """
        if text is None or not str(text).strip():
            raise InvalidInput("Text cannot be blank")

        payload = {"model": self.config.model_id, "input": text}
        try:
            response = self.session.post(self.url, json=payload, timeout=self.config.timeout)
        except requests.exceptions.RequestException as e:
            logger.error("Embedding request to %s failed: %s", self.url, e)
            raise ServiceError(f"Embedding service unreachable: {e}") from e

        if not 200 <= response.status_code < 300:
            raise ServiceError(f"Embedding API error: {response.status_code} - {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise ServiceError("Embedding API returned a non-JSON body") from e

        vector = self._first_embedding(data)
        if self.config.dimension is not None and len(vector) != self.config.dimension:
            raise ServiceError(
                f"Embedding has {len(vector)} dimensions, expected {self.config.dimension}"
            )
        return vector

    def embed_movie_text(self, title, description=None, genre_names=()):
        return self.embed(build_embedding_text(title, description, genre_names))

    @staticmethod
    def _first_embedding(data):
        embeddings = data.get("embeddings") if isinstance(data, dict) else None
        if not isinstance(embeddings, list) or not embeddings or not isinstance(embeddings[0], list):
            raise ServiceError("Embedding API response is missing 'embeddings'")
        try:
            return [float(x) for x in embeddings[0]]
        except (TypeError, ValueError) as e:
            raise ServiceError("Embedding API response holds non-numeric values") from e
