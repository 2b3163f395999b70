"""Connection pool handle and schema for the pgvector store."""

from __future__ import annotations

import enum
import logging
import threading
from typing import Optional

from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    create_engine,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.sql import func

from ..config import EMBEDDING_DIMENSION
from ..errors import ConfigurationError, StoreError

logger = logging.getLogger(__name__)

TABLE_NAME = "repo_embeddings"

NOT_CONFIGURED_MESSAGE = (
    "Vector store is not configured. Set PGVECTOR_DATABASE_URL (or DATABASE_URL) "
    "to a Postgres instance with the pgvector extension."
)


def build_embeddings_table(
    metadata: MetaData,
    dimension: int = EMBEDDING_DIMENSION,
    ivfflat_lists: int = 100,
) -> Table:
    """Define the ``repo_embeddings`` table for vectors of ``dimension``."""
    return Table(
        TABLE_NAME,
        metadata,
        Column("id", BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
        Column("repo_slug", Text, nullable=False),
        Column("branch", Text),
        Column("commit_sha", Text),
        Column("file_path", Text, nullable=False),
        Column("chunk_index", Integer, nullable=False),
        Column("content", Text, nullable=False),
        Column("embedding", Vector(dimension), nullable=False),
        Column("embedding_model", Text, nullable=False),
        Column("created_at", DateTime(timezone=True), server_default=func.now()),
        Index(f"{TABLE_NAME}_repo_slug_idx", "repo_slug"),
        Index(
            f"{TABLE_NAME}_vector_idx",
            "embedding",
            postgresql_using="ivfflat",
            postgresql_with={"lists": ivfflat_lists},
            postgresql_ops={"embedding": "vector_cosine_ops"},
        ),
    )


class DatabaseState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


class VectorDatabase:
    """Process-wide pool handle with a one-time, idempotent schema step.

    The handle starts ``UNINITIALIZED``; the first ``ensure_schema`` moves it
    to ``READY`` or, on error, to ``FAILED``. A failed handle keeps raising
    the original error; create a new handle to retry.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        engine: Optional[Engine] = None,
        dimension: int = EMBEDDING_DIMENSION,
        ivfflat_lists: int = 100,
    ) -> None:
        if engine is None and url:
            engine = create_engine(url, pool_pre_ping=True)
        self.engine = engine
        self.dimension = dimension
        self.metadata = MetaData()
        self.table = build_embeddings_table(self.metadata, dimension, ivfflat_lists)
        self.state = DatabaseState.UNINITIALIZED
        self._error: Optional[StoreError] = None
        self._lock = threading.Lock()
        self._session_factory = sessionmaker(bind=engine) if engine is not None else None

    @property
    def configured(self) -> bool:
        return self.engine is not None

    @property
    def is_postgres(self) -> bool:
        return self.engine is not None and self.engine.dialect.name == "postgresql"

    def ensure_schema(self) -> None:
        if self.engine is None:
            raise ConfigurationError(NOT_CONFIGURED_MESSAGE)
        if self.state is DatabaseState.READY:
            return

        with self._lock:
            if self.state is DatabaseState.READY:
                return
            if self.state is DatabaseState.FAILED and self._error is not None:
                raise self._error

            try:
                if self.is_postgres:
                    with self.engine.begin() as conn:
                        conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
                self.metadata.create_all(self.engine, checkfirst=True)
            except SQLAlchemyError as e:
                self.state = DatabaseState.FAILED
                self._error = StoreError(
                    "Unable to initialise the vector store schema. Ensure your database "
                    f'user can run "CREATE EXTENSION vector". Underlying error: {e}'
                )
                logger.error(f"Schema initialisation failed: {e}")
                raise self._error from e

            self.state = DatabaseState.READY
            logger.info(f"Vector store schema ready (table={TABLE_NAME}, dimension={self.dimension})")

    def session(self) -> Session:
        """New session on the pool; the schema is created on first use."""
        self.ensure_schema()
        return self._session_factory()

    def dispose(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
