#app.py
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from flask import Flask, Blueprint, current_app, request, session, jsonify
from werkzeug.security import generate_password_hash, check_password_hash

from models import db, User, Movie
from embedding_service import EmbeddingConfig, EmbeddingService
from errors import InvalidInput, NotFound, ServiceError
from catalog_importer import find_or_create_genre, link_genre
from likes import get_movie, get_user, like_movie, unlike_movie, liked_movies, liked_ids
from recommend import recommend_for_user
from repository import MovieRepository

MAX_LIMIT = 100

bp = Blueprint('moviematch', __name__)


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object('config')
    if test_config:
        app.config.update(test_config)

    db.init_app(app)
    app.extensions['embedding_service'] = EmbeddingService(EmbeddingConfig.from_mapping(app.config))
    app.register_blueprint(bp)

    # Create tables if they dont exist
    with app.app_context():
        if db.engine.dialect.name == 'postgresql':
            with db.engine.begin() as conn:
                conn.execute(text('CREATE EXTENSION IF NOT EXISTS vector'))
        db.create_all()
    return app


# --- Helpers ---

def _current_user():
    if 'user_id' not in session:
        return None
    try:
        return get_user(session['user_id'])
    except NotFound:
        # Account deleted while the session cookie was still around
        session.pop('user_id', None)
        return None


def _genre_names(raw):
    """A list of genre names, or a single name. Blanks and repeats are dropped."""
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        raise InvalidInput("genres must be a list of names")
    names = []
    for name in raw:
        if not isinstance(name, str):
            raise InvalidInput("genres must be a list of names")
        name = name.strip()
        if name and name not in names:
            names.append(name)
    return names


def _year(raw):
    if raw is None or raw == '':
        return None
    if isinstance(raw, bool):
        raise InvalidInput("year must be a whole number")
    if isinstance(raw, str):
        raw = raw.strip()
        try:
            raw = float(raw)
        except ValueError:
            raise InvalidInput("year must be a whole number")
    if isinstance(raw, float):
        if not raw.is_integer():
            raise InvalidInput("year must be a whole number")
        return int(raw)
    if isinstance(raw, int):
        return raw
    raise InvalidInput("year must be a whole number")


def _limit():
    default = current_app.config.get('RECOMMENDATION_LIMIT', 20)
    limit = request.args.get('limit', default, type=int)
    return max(1, min(limit, MAX_LIMIT))


def _movie_list(user, movies):
    ids = [m.id for m in movies]
    return jsonify({
        'movies': [m.to_dict() for m in movies],
        'liked_movie_ids': sorted(liked_ids(user, ids)),
    })


def _not_logged_in():
    return jsonify({'error': 'User not logged in'}), 401


# --- Error handlers ---

@bp.app_errorhandler(InvalidInput)
def handle_invalid_input(e):
    return jsonify({'error': str(e)}), 400


@bp.app_errorhandler(NotFound)
def handle_not_found(e):
    return jsonify({'error': str(e)}), 404


@bp.app_errorhandler(ServiceError)
def handle_service_error(e):
    current_app.logger.error("Embedding service failure: %s", e)
    return jsonify({'error': 'Embedding service unavailable', 'detail': str(e)}), 502


# =================================================================
# User Authentication Routes
# =================================================================

@bp.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not email:
        return jsonify({'error': 'Email is required'}), 400
    if len(password) < 6:
        return jsonify({'error': 'Password must be at least 6 characters long'}), 400
    if User.query.filter_by(email=email).first():
        return jsonify({'error': 'Email already registered'}), 409

    user = User(name=name or None, email=email, password_hash=generate_password_hash(password))
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({'error': 'Email already registered'}), 409

    session['user_id'] = user.id
    return jsonify(user.to_dict()), 201


@bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    user = User.query.filter_by(email=email).first()
    if user and check_password_hash(user.password_hash, password):
        session['user_id'] = user.id
        return jsonify(user.to_dict())
    return jsonify({'error': 'Invalid email or password'}), 401


@bp.route('/logout', methods=['POST'])
def logout():
    session.pop('user_id', None)
    return jsonify({'success': True})


# =================================================================
# Movie Routes
# =================================================================

@bp.route('/api/movies')
def list_movies():
    user = _current_user()
    if user is None:
        return _not_logged_in()
    movies = Movie.query.order_by(Movie.id.asc()).limit(_limit()).all()
    return _movie_list(user, movies)


@bp.route('/api/movies/<int:movie_id>')
def show_movie(movie_id):
    user = _current_user()
    if user is None:
        return _not_logged_in()
    movie = get_movie(movie_id)
    return jsonify({**movie.to_dict(), 'liked': movie.id in liked_ids(user, [movie.id])})


@bp.route('/api/movies', methods=['POST'])
def create_movie():
    if _current_user() is None:
        return _not_logged_in()

    data = request.get_json(silent=True) or {}
    title = (data.get('title') or '').strip()
    if not title:
        raise InvalidInput("Title cannot be blank")
    description = (data.get('description') or '').strip()
    genre_names = _genre_names(data.get('genres'))
    year = _year(data.get('year'))

    # Embed first: if the service is down nothing gets saved
    vector = current_app.extensions['embedding_service'].embed_movie_text(title, description, genre_names)

    movie = Movie(title=title, description=description or None, year=year)
    movie.replace_embedding(vector)
    db.session.add(movie)
    db.session.flush()
    for name in genre_names:
        link_genre(movie, find_or_create_genre(name))
    db.session.commit()

    current_app.logger.info("Created movie %s (%s)", movie.id, movie.title)
    return jsonify(movie.to_dict()), 201


@bp.route('/api/movies/liked')
def list_liked_movies():
    user = _current_user()
    if user is None:
        return _not_logged_in()
    return _movie_list(user, liked_movies(user, limit=_limit()))


@bp.route('/api/movies/recommended')
def list_recommended_movies():
    user = _current_user()
    if user is None:
        return _not_logged_in()

    pool = MovieRepository(index_enabled=current_app.config.get('VECTOR_INDEX_ENABLED', True))
    movies = recommend_for_user(
        user, pool,
        limit=_limit(),
        overfetch=current_app.config.get('NEIGHBOR_OVERFETCH', 1),
    )
    return _movie_list(user, movies)


# =================================================================
# Like Routes
# =================================================================

@bp.route('/api/movies/<int:movie_id>/like', methods=['POST'])
def add_like(movie_id):
    user = _current_user()
    if user is None:
        return _not_logged_in()
    like = like_movie(user, get_movie(movie_id))
    return jsonify({'success': True, 'like': like.to_dict()})


@bp.route('/api/movies/<int:movie_id>/like', methods=['DELETE'])
def remove_like(movie_id):
    user = _current_user()
    if user is None:
        return _not_logged_in()
    removed = unlike_movie(user, get_movie(movie_id))
    return jsonify({'success': removed, 'message': 'Unliked.' if removed else 'Movie was not liked'})


# =================================================================
# Main Execution Block
# =================================================================
if __name__ == '__main__':
    app = create_app()
    app.run(debug=False, host="0.0.0.0", port=5501)
