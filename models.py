# models.py

from flask_sqlalchemy import SQLAlchemy
from pgvector.sqlalchemy import Vector
from datetime import datetime

from config import EMBEDDING_DIMENSION

db = SQLAlchemy()

# pgvector column on PostgreSQL (enables nearest-neighbour queries),
# plain JSON list everywhere else. SQL NULL when no embedding was computed.
EmbeddingType = db.JSON(none_as_null=True).with_variant(Vector(EMBEDDING_DIMENSION), 'postgresql')


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=True)
    email = db.Column(db.String(100), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    likes = db.relationship('Like', back_populates='user', cascade='all, delete-orphan')
    liked_movies = db.relationship('Movie', secondary='likes', viewonly=True)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'email': self.email}

    def __repr__(self):
        return f'<User {self.email}>'


class Movie(db.Model):
    __tablename__ = 'movies'
    id = db.Column(db.Integer, primary_key=True)
    tmdb_id = db.Column(db.Integer, unique=True, nullable=True)  # id column of the catalog source
    title = db.Column(db.String(255))
    description = db.Column(db.Text)
    year = db.Column(db.Integer, nullable=True)
    embedding = db.Column(EmbeddingType, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    movie_genres = db.relationship('MovieGenre', back_populates='movie', cascade='all, delete-orphan')
    genres = db.relationship('Genre', secondary='movie_genres', viewonly=True, order_by='Genre.name')
    likes = db.relationship('Like', back_populates='movie', cascade='all, delete-orphan')

    @property
    def has_embedding(self):
        return self.embedding is not None

    def replace_embedding(self, vector):
        """Swap in a freshly computed embedding. The vector is stored whole, never patched."""
        self.embedding = None if vector is None else [float(x) for x in vector]

    def to_dict(self):
        return {
            'id': self.id,
            'tmdb_id': self.tmdb_id,
            'title': self.title,
            'description': self.description,
            'year': self.year,
            'genres': [genre.name for genre in self.genres],
            'has_embedding': self.has_embedding,
        }

    def __repr__(self):
        return f'<Movie {self.title}>'


class Genre(db.Model):
    __tablename__ = 'genres'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)

    def __repr__(self):
        return f'<Genre {self.name}>'


class MovieGenre(db.Model):
    __tablename__ = 'movie_genres'
    id = db.Column(db.Integer, primary_key=True)
    movie_id = db.Column(db.Integer, db.ForeignKey('movies.id', ondelete='CASCADE'), nullable=False, index=True)
    genre_id = db.Column(db.Integer, db.ForeignKey('genres.id', ondelete='CASCADE'), nullable=False, index=True)

    movie = db.relationship('Movie', back_populates='movie_genres')
    genre = db.relationship('Genre')

    # A movie is tagged with a genre at most once
    __table_args__ = (db.UniqueConstraint('movie_id', 'genre_id', name='_movie_genre_uc'),)


class Like(db.Model):
    __tablename__ = 'likes'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    movie_id = db.Column(db.Integer, db.ForeignKey('movies.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship('User', back_populates='likes')
    movie = db.relationship('Movie', back_populates='likes')

    # Ensure a user can't like the same movie twice
    __table_args__ = (db.UniqueConstraint('user_id', 'movie_id', name='_user_movie_uc'),)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'movie_id': self.movie_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Like {self.user_id}: {self.movie_id}>'
