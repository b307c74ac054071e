import logging

from mongoengine import connect, disconnect
from mongoengine.connection import get_db

from cinereview import config

logger = logging.getLogger(__name__)


class Database:
    """Explicit handle on the MongoDB connection used by the documents.

    The documents in ``cinereview.models`` are bound to ``alias``; the
    application connects the handle on startup and closes it on shutdown.
    ``client_class`` lets tests swap in ``mongomock.MongoClient``.
    """

    def __init__(self, uri, name, alias="default", client_class=None):
        self.uri = uri
        self.name = name
        self.alias = alias
        self.client_class = client_class
        self.connected = False

    @classmethod
    def from_config(cls):
        return cls(config.require_mongo_uri(), config.MONGO_DB)

    def connect(self):
        kwargs = {"db": self.name, "host": self.uri, "alias": self.alias}
        if self.client_class is not None:
            kwargs["mongo_client_class"] = self.client_class
        try:
            connect(**kwargs)
        except Exception as exc:
            raise RuntimeError(f"Failed to connect to MongoDB: {exc}") from exc
        self.connected = True
        logger.info("MongoEngine connected to database %r", self.name)
        return self

    def ping(self):
        if not self.connected:
            return False
        try:
            get_db(self.alias).command("ping")
        except Exception:
            logger.warning("MongoDB ping failed", exc_info=True)
            return False
        return True

    def close(self):
        if self.connected:
            disconnect(alias=self.alias)
            self.connected = False
            logger.info("MongoEngine disconnected from %r", self.name)
