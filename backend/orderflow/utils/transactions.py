from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session, SessionTransactionOrigin


@contextmanager
def smart_transaction(session: Session) -> Iterator:
    """
    Context manager that runs one unit of work on the given Session.

    - No transaction active: start a normal transaction (begin), committed on exit.
    - Transaction opened implicitly by earlier reads (autobegin): adopt it and
      commit it on exit, so reads done beforehand never swallow our writes.
    - Transaction opened explicitly by the caller: start a nested SAVEPOINT
      (begin_nested); the caller owns the final commit.

    Any exception rolls the unit of work back and propagates.
    Usage:
        with smart_transaction(db):
            ... DB work ...
    """
    if not session.in_transaction():
        with session.begin():
            yield
        return

    if session.get_transaction().origin is SessionTransactionOrigin.AUTOBEGIN:
        try:
            yield
            session.commit()
        except BaseException:
            session.rollback()
            raise
        return

    with session.begin_nested():
        yield
