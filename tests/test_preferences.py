import pytest

from preferences import build_preference


def test_no_likes_means_no_preference(fake_movie):
    assert build_preference([]) is None


def test_likes_without_embeddings_mean_no_preference(fake_movie):
    assert build_preference([fake_movie(1), fake_movie(2, embedding=None)]) is None


def test_single_liked_movie_is_the_preference(fake_movie):
    assert build_preference([fake_movie(1, [1.0, 0.0])]) == [1.0, 0.0]


def test_movies_without_embeddings_are_ignored(fake_movie):
    liked = [fake_movie(1, [1.0, 0.0]), fake_movie(2), fake_movie(3, [0.0, 1.0])]
    assert build_preference(liked) == pytest.approx([0.5, 0.5])


def test_accepts_unordered_collections(fake_movie):
    by_id = {m.id: m for m in (fake_movie(1, [2.0, 0.0]), fake_movie(2, [0.0, 2.0]))}
    assert build_preference(by_id.values()) == pytest.approx([1.0, 1.0])


def test_weights_shift_the_preference(fake_movie):
    liked = [fake_movie(1, [1.0, 0.0]), fake_movie(2, [0.0, 1.0])]
    assert build_preference(liked, weights={1: 3.0}) == pytest.approx([0.75, 0.25])


def test_empty_weight_mapping_is_the_plain_mean(fake_movie):
    liked = [fake_movie(1, [1.0, 3.0]), fake_movie(2, [3.0, 1.0])]
    assert build_preference(liked, weights={}) == pytest.approx(build_preference(liked))
