# mazao/mongo.py
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from bson import ObjectId
from bson.errors import InvalidId
from flask import current_app
from flask_pymongo import PyMongo
from pymongo import ASCENDING, DESCENDING

STORE_KEY = "mazao.store"


class Store:
    """
    Explicit handle on the Mongo database.

    Built once by the process entry point (or by tests with a mock client),
    handed to the app factory and from there to each service.
    """

    def __init__(self, client, db, transactions: bool = True):
        self.client = client
        self.db = db
        self.transactions = transactions

    # ------------------------------
    # Lifecycle
    # ------------------------------
    @classmethod
    def connect(cls, app) -> "Store":
        mongo = PyMongo(app)
        db = mongo.db
        if db is None:
            db = mongo.cx[app.config["MONGO_DB_NAME"]]

        store = cls(mongo.cx, db, transactions=app.config["MONGO_TRANSACTIONS"])
        store.ensure_indexes()
        app.logger.info("Mongo connected (db=%s)", db.name)
        return store

    def ensure_indexes(self) -> None:
        self.users.create_index([("email", ASCENDING)], unique=True)
        self.users.create_index([("role", ASCENDING), ("createdAt", DESCENDING)])
        self.crops.create_index([("farmerId", ASCENDING), ("createdAt", DESCENDING)])

    def close(self) -> None:
        self.client.close()

    # ------------------------------
    # Collections
    # ------------------------------
    @property
    def users(self):
        return self.db["users"]

    @property
    def crops(self):
        return self.db["crops"]

    @contextmanager
    def transaction(self) -> Iterator[Optional[object]]:
        """
        Yields a client session bound to a transaction, or None when the
        deployment does not support transactions (standalone mongod, mocks).
        """
        if not self.transactions:
            yield None
            return

        with self.client.start_session() as session:
            with session.start_transaction():
                yield session


def get_store() -> Store:
    return current_app.extensions[STORE_KEY]


# ------------------------------
# Small helpers shared by services
# ------------------------------
def utcnow() -> datetime:
    # naive UTC, matching what pymongo hands back on reads
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_object_id(value) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def to_iso(dt_val) -> Optional[str]:
    if not dt_val:
        return None
    if isinstance(dt_val, datetime):
        if dt_val.tzinfo is not None:
            dt_val = dt_val.astimezone(timezone.utc).replace(tzinfo=None)
        return dt_val.isoformat(timespec="milliseconds") + "Z"
    return str(dt_val)
