from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy.engine import Engine, make_url
from sqlmodel import Field, Session, SQLModel, create_engine


# --- DB MODELLE (local backend) ---
class Account(SQLModel, table=True):
    uid: str = Field(primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    password_salt: str
    created_at: float


class SessionToken(SQLModel, table=True):
    token: str = Field(primary_key=True)
    uid: str = Field(index=True, foreign_key="account.uid")
    kind: str = Field(index=True)  # "id" or "refresh"
    refresh_token: Optional[str] = Field(default=None, index=True)
    expires_at: Optional[float] = None


class StoredDocument(SQLModel, table=True):
    id: str = Field(primary_key=True)
    collection: str = Field(index=True)
    owner_id: str = Field(default="", index=True)
    fields_json: str = "{}"


def create_db_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    connect_args = {}
    if url.get_backend_name() == "sqlite":
        connect_args["check_same_thread"] = False
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(database_url, connect_args=connect_args)
    SQLModel.metadata.create_all(engine)
    return engine


def ensure_document_schema(engine: Engine, owner_field: str) -> None:
    """Add ``owner_id`` to databases created before it existed and backfill it."""
    if engine.dialect.name != "sqlite":
        return
    with engine.begin() as conn:
        columns = {row[1] for row in conn.exec_driver_sql("PRAGMA table_info(storeddocument)").fetchall()}
        if "owner_id" not in columns:
            conn.exec_driver_sql("ALTER TABLE storeddocument ADD COLUMN owner_id TEXT DEFAULT ''")
            conn.exec_driver_sql(
                "CREATE INDEX IF NOT EXISTS ix_storeddocument_owner_id ON storeddocument (owner_id)"
            )
        conn.exec_driver_sql(
            "UPDATE storeddocument SET owner_id = COALESCE(json_extract(fields_json, ?), '') "
            "WHERE owner_id IS NULL OR owner_id = ''",
            (f"$.{owner_field}",),
        )


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    with Session(engine) as session:
        yield session
