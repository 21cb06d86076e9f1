from types import SimpleNamespace

import numpy as np
import pytest

from app import create_app
from embedding_service import build_embedding_text
from errors import ServiceError
from models import db, Movie, User


class StubEmbedder:
    """Stands in for EmbeddingService; records every text it was asked to embed."""

    def __init__(self, vector=(0.1, 0.2, 0.3), fail_on=None):
        self.vector = list(vector)
        self.fail_on = fail_on
        self.calls = []

    def embed(self, text):
        self.calls.append(text)
        if self.fail_on is not None and self.fail_on in text:
            raise ServiceError("Embedding API error: 500 - boom")
        return list(self.vector)

    def embed_movie_text(self, title, description=None, genre_names=()):
        return self.embed(build_embedding_text(title, description, genre_names))


class InMemoryPool:
    """Candidate pool over plain objects, optionally with a Euclidean index."""

    def __init__(self, movies, supports_nearest_neighbors=False):
        self.movies = sorted(movies, key=lambda m: m.id)
        self.supports_nearest_neighbors = supports_nearest_neighbors
        self.neighbor_requests = []

    def catalog(self, exclude_ids=(), limit=20):
        return [m for m in self.movies if m.id not in exclude_ids][:limit]

    def embedded(self, exclude_ids=()):
        return [m for m in self.movies if m.id not in exclude_ids and m.embedding is not None]

    def nearest_neighbors(self, vector, limit, distance="euclidean"):
        assert distance == "euclidean"
        self.neighbor_requests.append(limit)
        with_vectors = [m for m in self.movies if m.embedding is not None]
        query = np.asarray(vector, dtype=float)
        with_vectors.sort(key=lambda m: (np.linalg.norm(np.asarray(m.embedding) - query), m.id))
        return with_vectors[:limit]


def movie(id, embedding=None, title=None):
    return SimpleNamespace(id=id, embedding=embedding, title=title or f"Movie {id}")


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SECRET_KEY': 'test-secret',
        'VECTOR_INDEX_ENABLED': False,
    })
    app.extensions['embedding_service'] = StubEmbedder()
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def embedder(app):
    return app.extensions['embedding_service']


@pytest.fixture
def make_movie(app):
    def _make(title, embedding=None, **fields):
        m = Movie(title=title, **fields)
        m.replace_embedding(embedding)
        db.session.add(m)
        db.session.commit()
        return m
    return _make


@pytest.fixture
def make_user(app):
    counter = {'n': 0}

    def _make(email=None):
        counter['n'] += 1
        user = User(email=email or f"user{counter['n']}@example.com", password_hash='x')
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def pool_factory():
    return InMemoryPool


@pytest.fixture
def fake_movie():
    return movie
