from __future__ import annotations
from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from .. import db


def commit(action: str) -> None:
    """Commit the session, rolling back on failure.

    ``IntegrityError`` is re-raised untouched so callers can map constraint
    violations to a conflict; any other database error is logged first.
    """
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error while trying to %s", action)
        raise
