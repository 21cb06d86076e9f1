"""SQL-backed candidate pool used by the recommender."""

import logging

from pgvector.sqlalchemy import Vector

from models import db, Movie

logger = logging.getLogger(__name__)

# pgvector distance operators
DISTANCE_OPERATORS = {
    'euclidean': '<->',
}


class MovieRepository:
    """
    Reads candidate movies through a SQLAlchemy session.

    Nearest-neighbour lookups are only advertised on PostgreSQL (pgvector);
    on any other database the recommender falls back to a full scan.
    """

    def __init__(self, session=None, index_enabled=True):
        self.session = session or db.session
        self.index_enabled = index_enabled

    @property
    def supports_nearest_neighbors(self):
        if not self.index_enabled:
            return False
        return self.session.get_bind().dialect.name == 'postgresql'

    def _not_excluded(self, query, exclude_ids):
        if exclude_ids:
            query = query.filter(Movie.id.notin_(list(exclude_ids)))
        return query

    def catalog(self, exclude_ids=(), limit=20):
        query = self._not_excluded(self.session.query(Movie), exclude_ids)
        return query.order_by(Movie.id.asc()).limit(limit).all()

    def embedded(self, exclude_ids=()):
        query = self.session.query(Movie).filter(Movie.embedding.isnot(None))
        return self._not_excluded(query, exclude_ids).order_by(Movie.id.asc()).all()

    def nearest_neighbors(self, vector, limit, distance='euclidean'):
        try:
            operator = DISTANCE_OPERATORS[distance]
        except KeyError:
            raise ValueError(f"Unknown distance metric: {distance}")
        if not self.supports_nearest_neighbors:
            raise NotImplementedError("nearest-neighbour lookups need PostgreSQL with pgvector")

        logger.debug("Nearest-neighbour query (%s) for %d movies", distance, limit)
        query_vector = db.bindparam('query_vector', list(vector), type_=Vector(len(vector)))
        distance_expr = Movie.embedding.op(operator, return_type=db.Float)(query_vector)
        return (
            self.session.query(Movie)
            .filter(Movie.embedding.isnot(None))
            .order_by(distance_expr)
            .limit(limit)
            .all()
        )
