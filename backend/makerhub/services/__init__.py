# Services package
#
# Data access layer for the MakerHub backend.
#
# Module structure:
# - directory_repository.py: Facade used by the routes (main API)
# - backend_base.py: Abstract backend interface
# - postgres_backend.py: asyncpg implementation (DATABASE_URL)
# - rest_backend.py: PostgREST implementation (SUPABASE_URL + SUPABASE_KEY)
# - query_compiler.py: ProductQuery -> SQL / PostgREST filters
# - row_mapper.py: Backend rows -> models
# - sanitizer.py: NUL stripping
# - degradation.py: Unavailable-vs-other error classification
# - async_runner.py: Runs coroutines from synchronous Flask views
#
# Usage:
#   from makerhub.services import DirectoryRepository

from .directory_repository import DirectoryRepository
from .backend_base import DirectoryBackend
from .async_runner import AsyncRunner
from .degradation import is_backend_unavailable
from .errors import (
    DatabaseNotConfiguredError,
    DirectoryError,
    RestBackendError,
    UnsupportedOperationError,
)

__all__ = [
    'DirectoryRepository',
    'DirectoryBackend',
    'AsyncRunner',
    'is_backend_unavailable',
    'DatabaseNotConfiguredError',
    'DirectoryError',
    'RestBackendError',
    'UnsupportedOperationError',
]
