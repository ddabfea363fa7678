"""Transaction helpers with a bounded execution time.

Every unit of work in the order engine runs inside ``bounded_atomic()``.
The timeout is applied per statement using whatever knob the active
database vendor offers:

- PostgreSQL: ``statement_timeout`` scoped to the transaction.
- MySQL: ``innodb_lock_wait_timeout`` for the session.
- SQLite: the connection ``timeout`` option (busy handler), configured
  in ``settings.DATABASES``.

A statement that exceeds the limit raises ``django.db.DatabaseError``,
which rolls the whole transaction back.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, connections, transaction

DEFAULT_OPERATION_TIMEOUT = 10


def operation_timeout() -> int:
    """Return the configured DB operation timeout in seconds."""
    return int(getattr(settings, "DB_OPERATION_TIMEOUT", DEFAULT_OPERATION_TIMEOUT))


def _apply_timeout(using: str, seconds: int) -> None:
    connection = connections[using]
    vendor = connection.vendor
    if vendor == "postgresql":
        with connection.cursor() as cursor:
            cursor.execute(
                "SELECT set_config('statement_timeout', %s, true)",
                [str(seconds * 1000)],
            )
    elif vendor == "mysql":
        with connection.cursor() as cursor:
            cursor.execute("SET SESSION innodb_lock_wait_timeout = %s", [seconds])


@contextmanager
def bounded_atomic(
    using: str = DEFAULT_DB_ALIAS, timeout: Optional[int] = None
) -> Iterator[None]:
    """``transaction.atomic`` whose statements are bounded by a timeout."""
    seconds = timeout if timeout is not None else operation_timeout()
    with transaction.atomic(using=using):
        _apply_timeout(using, seconds)
        yield
