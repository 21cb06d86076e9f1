import pytest

from errors import NotFound
from likes import get_movie, get_user, like_movie, liked_ids, liked_movies, unlike_movie
from models import db, Like, Movie, User


def test_liking_twice_keeps_one_row(make_movie, make_user):
    user, movie = make_user(), make_movie("Heat")
    first = like_movie(user, movie)
    second = like_movie(user, movie)

    assert first.id == second.id
    assert Like.query.filter_by(user_id=user.id, movie_id=movie.id).count() == 1


def test_concurrent_duplicate_returns_existing_row(make_movie, make_user, monkeypatch):
    user, movie = make_user(), make_movie("Heat")
    winner = like_movie(user, movie)

    # Simulate losing the race: our pre-check sees nothing, the insert hits the constraint
    class EmptyQuery:
        def __init__(self, real):
            self.real = real
            self.calls = 0

        def filter_by(self, **kwargs):
            self.calls += 1
            if self.calls == 1:
                return self
            return self.real.filter_by(**kwargs)

        def first(self):
            return None

    monkeypatch.setattr(Like, 'query', EmptyQuery(Like.query))
    like = like_movie(user, movie)
    monkeypatch.undo()

    assert like.id == winner.id
    assert Like.query.filter_by(user_id=user.id, movie_id=movie.id).count() == 1


def test_unlike(make_movie, make_user):
    user, movie = make_user(), make_movie("Heat")
    like_movie(user, movie)

    assert unlike_movie(user, movie) is True
    assert unlike_movie(user, movie) is False
    assert Like.query.count() == 0


def test_liked_movies_most_recent_first(make_movie, make_user):
    user = make_user()
    first, second, third = make_movie("One"), make_movie("Two"), make_movie("Three")
    for m in (second, first, third):
        like_movie(user, m)

    assert [m.id for m in liked_movies(user)] == [third.id, first.id, second.id]
    assert [m.id for m in liked_movies(user, limit=1)] == [third.id]


def test_liked_ids_can_be_narrowed(make_movie, make_user):
    user, other = make_user(), make_user()
    a, b, c = make_movie("A"), make_movie("B"), make_movie("C")
    like_movie(user, a)
    like_movie(user, c)
    like_movie(other, b)

    assert liked_ids(user) == {a.id, c.id}
    assert liked_ids(user, [a.id, b.id]) == {a.id}


def test_deleting_a_movie_removes_its_likes(make_movie, make_user):
    user, movie = make_user(), make_movie("Heat")
    like_movie(user, movie)

    db.session.delete(db.session.get(Movie, movie.id))
    db.session.commit()
    assert Like.query.count() == 0


def test_deleting_a_user_removes_their_likes(make_movie, make_user):
    user, movie = make_user(), make_movie("Heat")
    like_movie(user, movie)

    db.session.delete(db.session.get(User, user.id))
    db.session.commit()
    assert Like.query.count() == 0
    assert Movie.query.count() == 1


def test_lookups_raise_not_found(app):
    with pytest.raises(NotFound):
        get_movie(404)
    with pytest.raises(NotFound):
        get_user(404)
