"""
Degradation policy: decide whether a data-layer failure is "unavailable" or real.

Unavailable failures (missing configuration, auth rejections, timeouts,
connectivity, encoding problems, pool/statement-cache exhaustion) let the
HTTP layer answer with an empty payload and a message; anything else is a
hard 500.

Structured driver exceptions are checked first. The lower-cased error text
is matched against ``UNAVAILABLE_PATTERNS`` last, which is what catches the
free-text REST bodies. Extend the list as new backend messages show up.
"""

import asyncio
import socket

import asyncpg
import httpx

from makerhub.services.errors import (
    DatabaseNotConfiguredError,
    RestBackendError,
    UnsupportedOperationError,
)

UNAVAILABLE_PATTERNS = (
    'no database configured',
    'rest backend auth failed',
    'invalid api key',
    '401 unauthorized',
    '403 forbidden',
    'operation timed out',
    'client error (connect)',
    'connection timed out',
    'connection refused',
    'error connecting',
    'decoding column',
    'invalid byte sequence for encoding',
    'encoding "utf8"',
    'null character not permitted',
    'password authentication failed',
    'could not translate host name',
    'name or service not known',
    'pool timed out',
    'statement timeout',
    'canceling statement due to statement timeout',
    'prepared statement',
    'bind message supplies',
    'insufficient data left in message',
    'too many connections',
    'connection is closed',
)

_UNAVAILABLE_TYPES = (
    DatabaseNotConfiguredError,
    UnsupportedOperationError,
    TimeoutError,
    asyncio.TimeoutError,
    ConnectionError,
    socket.gaierror,
    httpx.TransportError,
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.InvalidPasswordError,
    asyncpg.exceptions.InvalidAuthorizationSpecificationError,
    asyncpg.exceptions.QueryCanceledError,
    asyncpg.exceptions.TooManyConnectionsError,
    asyncpg.exceptions.CannotConnectNowError,
    asyncpg.exceptions.CharacterNotInRepertoireError,
    asyncpg.exceptions.UntranslatableCharacterError,
    asyncpg.exceptions.InvalidCachedStatementError,
)


def describe_error(err: BaseException) -> str:
    """Lower-cased ``Type: message`` text used by the pattern fallback."""
    text = f"{type(err).__name__}: {err}"
    if isinstance(err, RestBackendError) and err.body and err.body not in text:
        text = f"{text} {err.body}"
    return text.lower()


def is_backend_unavailable(err: BaseException) -> bool:
    if isinstance(err, _UNAVAILABLE_TYPES):
        return True
    if isinstance(err, RestBackendError) and err.is_auth_failure:
        return True
    description = describe_error(err)
    return any(pattern in description for pattern in UNAVAILABLE_PATTERNS)
