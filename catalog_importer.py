"""
Populates movies, genres and embeddings from a catalog CSV
(TMDB-style columns: id, title, overview, release_date, genres).

    python catalog_importer.py movies.csv [--continue-on-error]

By default the first embedding failure aborts the run. With
--continue-on-error the failing row is recorded and the import moves on.
"""

import argparse
import ast
import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from embedding_service import build_embedding_text
from errors import MovieMatchError
from models import db, Genre, Movie, MovieGenre

logger = logging.getLogger(__name__)

IMPORTED = 'imported'
SKIPPED = 'skipped'
FAILED = 'failed'


@dataclass
class RowResult:
    index: int
    status: str
    movie_id: Optional[int] = None
    error: Optional[str] = None


@dataclass
class ImportReport:
    results: List[RowResult] = field(default_factory=list)

    def count(self, status):
        return sum(1 for r in self.results if r.status == status)

    @property
    def imported(self):
        return self.count(IMPORTED)

    @property
    def skipped(self):
        return self.count(SKIPPED)

    @property
    def failed(self):
        return self.count(FAILED)


# --- Field parsing ---

def _text(value):
    if value is None:
        return ''
    return str(value).strip()


def parse_int(value):
    try:
        return int(_text(value))
    except ValueError:
        return None


def parse_year(release_date):
    """'1995-10-30' -> 1995. Anything without four leading digits -> None."""
    head = _text(release_date)[:4]
    return int(head) if len(head) == 4 and head.isdigit() else None


def parse_genres(raw):
    """
    Reads a string-encoded list of {"name": ...} objects and returns the
    distinct genre names in their original order. Both JSON and the
    single-quoted Python form found in TMDB dumps are accepted.
    """
    raw = _text(raw)
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except ValueError:
        try:
            items = ast.literal_eval(raw)
        except (ValueError, SyntaxError, TypeError, RecursionError, MemoryError):
            logger.warning("Could not parse genres %r; importing without genres", raw)
            return []

    names = []
    for item in items if isinstance(items, list) else []:
        name = _text(item.get('name')) if isinstance(item, dict) else ''
        if name and name not in names:
            names.append(name)
    return names


# --- Persistence ---

def find_or_create_genre(name):
    genre = Genre.query.filter_by(name=name).first()
    if genre is None:
        genre = Genre(name=name)
        db.session.add(genre)
        db.session.flush()
    return genre


def link_genre(movie, genre):
    exists = MovieGenre.query.filter_by(movie_id=movie.id, genre_id=genre.id).first()
    if not exists:
        db.session.add(MovieGenre(movie_id=movie.id, genre_id=genre.id))


def import_row(raw, embedder):
    """
    Creates (or updates, matched on the source id) one movie from a catalog
    row and stores its embedding. Returns None when the title is blank.

    Embedding errors propagate after the row's changes are rolled back.
    """
    title = _text(raw.get('title'))
    if not title:
        return None

    tmdb_id = parse_int(raw.get('id'))
    movie = Movie.query.filter_by(tmdb_id=tmdb_id).first() if tmdb_id is not None else None
    if movie is None:
        movie = Movie(tmdb_id=tmdb_id)
        db.session.add(movie)

    description = _text(raw.get('overview'))
    movie.title = title
    movie.description = description or None
    movie.year = parse_year(raw.get('release_date'))

    genre_names = parse_genres(raw.get('genres'))
    try:
        db.session.flush()
        for name in genre_names:
            link_genre(movie, find_or_create_genre(name))

        movie.replace_embedding(embedder.embed(build_embedding_text(title, description, genre_names)))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return movie


def import_rows(rows, embedder, continue_on_error=False):
    report = ImportReport()
    for index, raw in enumerate(rows):
        try:
            movie = import_row(raw, embedder)
        except MovieMatchError as e:
            if not continue_on_error:
                raise
            logger.error("Row %d failed: %s", index, e)
            report.results.append(RowResult(index, FAILED, error=str(e)))
            continue

        if movie is None:
            report.results.append(RowResult(index, SKIPPED))
        else:
            report.results.append(RowResult(index, IMPORTED, movie_id=movie.id))
    return report


def read_catalog(path):
    # Everything as text; missing cells become '' instead of NaN
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    return df.to_dict('records')


def import_catalog(path, embedder, continue_on_error=False):
    rows = read_catalog(path)
    print(f"Importing {len(rows)} catalog rows from {path}...")
    report = import_rows(rows, embedder, continue_on_error=continue_on_error)
    print(f"Imported {report.imported}, skipped {report.skipped}, failed {report.failed}.")
    return report


def main(argv=None):
    parser = argparse.ArgumentParser(description="Import a movie catalog CSV and embed every movie.")
    parser.add_argument("path", help="CSV file with id, title, overview, release_date and genres columns")
    parser.add_argument("--continue-on-error", action="store_true",
                        help="record failing rows and keep importing instead of aborting")
    args = parser.parse_args(argv)

    from app import create_app
    app = create_app()
    with app.app_context():
        import_catalog(args.path, app.extensions['embedding_service'], continue_on_error=args.continue_on_error)


if __name__ == '__main__':
    main()
