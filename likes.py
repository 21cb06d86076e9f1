from sqlalchemy.exc import IntegrityError

from errors import NotFound
from models import db, Like, Movie, User


def get_movie(movie_id):
    movie = db.session.get(Movie, movie_id)
    if movie is None:
        raise NotFound(f"Movie {movie_id} not found")
    return movie


def get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found")
    return user


def like_movie(user, movie):
    """Like ``movie`` as ``user``. Liking twice returns the existing Like."""
    existing = Like.query.filter_by(user_id=user.id, movie_id=movie.id).first()
    if existing:
        return existing

    like = Like(user_id=user.id, movie_id=movie.id)
    db.session.add(like)
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent request inserted the same pair first; the unique
        # constraint kept it to one row, so hand back that row.
        db.session.rollback()
        return Like.query.filter_by(user_id=user.id, movie_id=movie.id).one()
    return like


def unlike_movie(user, movie):
    like = Like.query.filter_by(user_id=user.id, movie_id=movie.id).first()
    if like is None:
        return False
    db.session.delete(like)
    db.session.commit()
    return True


def liked_movies(user, limit=None):
    """Movies the user liked, most recent first."""
    query = (
        Movie.query.join(Like, Like.movie_id == Movie.id)
        .filter(Like.user_id == user.id)
        .order_by(Like.created_at.desc(), Like.id.desc())
    )
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def liked_ids(user, movie_ids=None):
    query = db.session.query(Like.movie_id).filter(Like.user_id == user.id)
    if movie_ids is not None:
        query = query.filter(Like.movie_id.in_(list(movie_ids)))
    return {movie_id for (movie_id,) in query.all()}
