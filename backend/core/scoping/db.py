import logging
import time
from contextlib import contextmanager

from django.conf import settings
from django.db import DatabaseError, connection, transaction

from scoping.exceptions import InternalError, QueryTimeout

logger = logging.getLogger(__name__)

QUERY_CANCELED_SQLSTATE = "57014"


def _is_statement_timeout(exc: DatabaseError) -> bool:
    cause = exc.__cause__ or exc
    sqlstate = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    if sqlstate == QUERY_CANCELED_SQLSTATE:
        return True
    return "statement timeout" in str(exc).lower()


@contextmanager
def bounded_query(timeout_ms=None, *, label=""):
    """Run the enclosed queries with a server-side time budget.

    On PostgreSQL the budget is applied with ``SET LOCAL statement_timeout``
    inside a transaction. A cancelled statement surfaces as ``QueryTimeout``;
    any other database failure as ``InternalError``. Nothing partial leaks out.
    """

    if timeout_ms is None:
        timeout_ms = int(getattr(settings, "MAP_QUERY_TIMEOUT_MS", 5000))
    started = time.monotonic()
    try:
        with transaction.atomic():
            if connection.vendor == "postgresql" and timeout_ms > 0:
                with connection.cursor() as cursor:
                    cursor.execute("SET LOCAL statement_timeout = %s", [int(timeout_ms)])
            yield
    except DatabaseError as exc:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        if _is_statement_timeout(exc):
            logger.warning(
                "map query timed out",
                extra={"label": label, "timeout_ms": timeout_ms, "elapsed_ms": elapsed_ms},
            )
            raise QueryTimeout() from exc
        logger.exception("map query failed", extra={"label": label, "elapsed_ms": elapsed_ms})
        raise InternalError("Map query failed.") from exc
