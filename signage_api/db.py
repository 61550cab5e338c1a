import os

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

DATABASE_URL = os.getenv("SIGNAGE_DATABASE_URL", "sqlite:///./signage.db")
SQLITE_BUSY_TIMEOUT_SEC = float(os.getenv("SIGNAGE_SQLITE_BUSY_TIMEOUT_SEC", "5"))

Base = declarative_base()


def build_engine(url: str = DATABASE_URL) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    bound = create_engine(
        url,
        connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_SEC},
    )

    @event.listens_for(bound, "connect")
    def _sqlite_pragmas(dbapi_conn, _record) -> None:
        cursor = dbapi_conn.cursor()
        # WAL lets device polls read while an admin write is in flight.
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return bound


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autocommit=False, autoflush=False, expire_on_commit=False)


engine = build_engine()
SessionLocal = build_session_factory(engine)


def ensure_sqlite_schema(bind: Engine | None = None) -> None:
    """
    Lightweight runtime schema patching for SQLite.

    `Base.metadata.create_all()` won't add new columns to existing tables.
    Databases created before screen settings existed only carry the URL and
    layout columns, so those get the screen columns with their defaults here.
    Persisted values are also pulled back into range, which keeps hand-edited
    rows from ever reaching a device un-normalized.
    """
    bind = bind or engine
    if bind.dialect.name != "sqlite":
        return

    with bind.begin() as conn:
        cols = conn.execute(text("PRAGMA table_info(device_config)")).fetchall()
        if not cols:
            return
        col_names = {row[1] for row in cols}  # (cid, name, type, notnull, dflt_value, pk)
        if "orientation" not in col_names:
            conn.execute(text("ALTER TABLE device_config ADD COLUMN orientation VARCHAR(16) NOT NULL DEFAULT 'row'"))
        if "split_ratio" not in col_names:
            conn.execute(text("ALTER TABLE device_config ADD COLUMN split_ratio INTEGER NOT NULL DEFAULT 50"))
        if "gap_px" not in col_names:
            conn.execute(text("ALTER TABLE device_config ADD COLUMN gap_px INTEGER NOT NULL DEFAULT 0"))
        if "padding_px" not in col_names:
            conn.execute(text("ALTER TABLE device_config ADD COLUMN padding_px INTEGER NOT NULL DEFAULT 0"))
        if "updated_at" not in col_names:
            conn.execute(text("ALTER TABLE device_config ADD COLUMN updated_at BIGINT NOT NULL DEFAULT 0"))

        conn.execute(
            text(
                "UPDATE device_config SET layout='split' "
                "WHERE layout IS NULL OR layout NOT IN ('split', 'web_only', 'video_only')"
            )
        )
        conn.execute(
            text(
                "UPDATE device_config SET orientation='row' "
                "WHERE orientation IS NULL OR orientation <> 'column'"
            )
        )
        conn.execute(text("UPDATE device_config SET web_url='' WHERE web_url IS NULL"))
        conn.execute(text("UPDATE device_config SET video_url='' WHERE video_url IS NULL"))
        conn.execute(text("UPDATE device_config SET split_ratio=50 WHERE split_ratio IS NULL"))
        conn.execute(text("UPDATE device_config SET split_ratio=0 WHERE split_ratio < 0"))
        conn.execute(text("UPDATE device_config SET split_ratio=100 WHERE split_ratio > 100"))
        for column in ("gap_px", "padding_px"):
            conn.execute(text(f"UPDATE device_config SET {column}=0 WHERE {column} IS NULL OR {column} < 0"))
            conn.execute(text(f"UPDATE device_config SET {column}=200 WHERE {column} > 200"))
