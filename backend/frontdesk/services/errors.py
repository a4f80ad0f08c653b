# Overview: Service-layer error hierarchy shared by the front-desk services.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db


class FrontDeskError(Exception):
    """Base class for recoverable front-desk service errors."""


class StoreReadError(FrontDeskError):
    """
    Reading from the backing store failed (connection, permissions, schema).

    Recoverable: callers show a one-shot message and keep their prior state.
    Nothing is retried.
    """


class NotFoundError(FrontDeskError):
    """Requested record does not exist."""


@contextmanager
def store_read(what: str):
    """
    Convert store failures inside the block to StoreReadError.

    Usage:
        with store_read("rooms"):
            rooms = db.session.query(Room).all()
    """
    try:
        yield
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StoreReadError(f"Failed to fetch {what}") from exc
