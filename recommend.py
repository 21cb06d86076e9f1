import logging

import vector_math
from preferences import build_preference

logger = logging.getLogger(__name__)


class CandidateRetriever:
    """Ranks embedding-bearing candidates against a preference vector."""

    def retrieve(self, preference, exclude_ids, limit):
        raise NotImplementedError()


class IndexedRetriever(CandidateRetriever):
    """
    Asks the pool's nearest-neighbour index for the closest movies by
    Euclidean distance, then drops excluded and embedding-less ones.

    Filtering happens after the fetch, so fewer than ``limit`` movies can come
    back. ``overfetch`` widens the initial fetch to make that less likely.
    """

    def __init__(self, pool, overfetch=1):
        self.pool = pool
        self.overfetch = max(1, int(overfetch))

    def retrieve(self, preference, exclude_ids, limit):
        neighbors = self.pool.nearest_neighbors(preference, limit * self.overfetch, distance="euclidean")
        kept = [m for m in neighbors if m.id not in exclude_ids and m.embedding is not None]
        return kept[:limit]


class ScanRetriever(CandidateRetriever):
    """Scores every candidate by cosine similarity. Fine for small catalogs."""

    def __init__(self, pool):
        self.pool = pool

    def retrieve(self, preference, exclude_ids, limit):
        candidates = [
            m for m in self.pool.embedded(exclude_ids)
            if m.id not in exclude_ids and m.embedding is not None
        ]
        scores = vector_math.cosine_scores(preference, [m.embedding for m in candidates])
        # Highest score first; ties go to the lower id so output is deterministic
        ranked = sorted(zip(scores, candidates), key=lambda x: (-x[0], x[1].id))
        return [movie for _, movie in ranked[:limit]]


def retriever_for(pool, overfetch=1):
    if getattr(pool, "supports_nearest_neighbors", False):
        return IndexedRetriever(pool, overfetch=overfetch)
    return ScanRetriever(pool)


class SimilarityRanker:
    """
    Turns a preference vector into an ordered list of movies.

    Without a preference the pool's catalog listing (id ascending) is returned
    and no similarity is computed. With one, the retriever picked at
    construction time does the ranking. Note the indexed path orders by
    Euclidean distance and the scan path by cosine similarity; the two can
    disagree.
    """

    def __init__(self, pool, retriever=None, overfetch=1):
        self.pool = pool
        self.retriever = retriever or retriever_for(pool, overfetch=overfetch)

    def recommend(self, preference, exclude_ids=(), limit=20):
        exclude_ids = set(exclude_ids or ())
        if limit <= 0:
            return []
        if preference is None:
            return self.pool.catalog(exclude_ids, limit)
        return self.retriever.retrieve(preference, exclude_ids, limit)


def recommend_for_user(user, pool, limit=20, weights=None, overfetch=1):
    """
    Recommends movies for ``user`` based on the movies they liked.
    Already liked movies are never returned.
    """
    liked = list(user.liked_movies)
    preference = build_preference(liked, weights=weights)
    ranker = SimilarityRanker(pool, overfetch=overfetch)
    if preference is None:
        logger.info("User %s has no embedded likes; returning catalog listing", user.id)
    return ranker.recommend(preference, exclude_ids={m.id for m in liked}, limit=limit)
