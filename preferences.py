import vector_math


def build_preference(liked_movies, weights=None):
    """
    Average the embeddings of a user's liked movies into one preference vector.

    Movies without an embedding are ignored. Returns None when nothing is
    left, which callers treat as "no preference yet" rather than an error.

    ``weights`` optionally maps movie id -> preference strength; movies not in
    the mapping count with weight 1.0.
    """
    embedded = [m for m in liked_movies if getattr(m, 'embedding', None) is not None]
    if not embedded:
        return None

    vectors = [m.embedding for m in embedded]
    movie_weights = None
    if weights is not None:
        movie_weights = [float(weights.get(m.id, 1.0)) for m in embedded]
    return vector_math.mean(vectors, weights=movie_weights)
