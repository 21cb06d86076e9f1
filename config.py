# config.py
import os

DB_USER = os.environ.get('DB_USER', 'postgres')
DB_PASSWORD = os.environ.get('DB_PASSWORD', 'postgres')
DB_HOST = os.environ.get('DB_HOST', '127.0.0.1')  # Use IP instead of 'localhost'
DB_PORT = int(os.environ.get('DB_PORT', 5432))
DB_NAME = os.environ.get('DB_NAME', 'moviematch')

SQLALCHEMY_DATABASE_URI = os.environ.get(
    'DATABASE_URL',
    f'postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}'
)
SQLALCHEMY_TRACK_MODIFICATIONS = False

SECRET_KEY = os.environ.get('SECRET_KEY', 'default_super_secret_key_for_dev')

# Ollama must be running with the model pulled: `ollama pull all-minilm:l6-v2`
OLLAMA_URL = os.environ.get('OLLAMA_URL', 'http://localhost:11434')
EMBEDDING_MODEL = os.environ.get('EMBEDDING_MODEL', 'all-minilm:l6-v2')
EMBEDDING_DIMENSION = int(os.environ.get('EMBEDDING_DIMENSION', 384))
EMBEDDING_TIMEOUT = float(os.environ.get('EMBEDDING_TIMEOUT', 30))
EMBEDDING_MAX_RETRIES = int(os.environ.get('EMBEDDING_MAX_RETRIES', 3))

# Nearest-neighbour lookups need PostgreSQL with the pgvector extension.
VECTOR_INDEX_ENABLED = os.environ.get('VECTOR_INDEX_ENABLED', '1').lower() not in ('0', 'false', 'no')

RECOMMENDATION_LIMIT = int(os.environ.get('RECOMMENDATION_LIMIT', 20))
NEIGHBOR_OVERFETCH = int(os.environ.get('NEIGHBOR_OVERFETCH', 1))
