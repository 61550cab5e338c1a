import logging
import threading
import time
import weakref
from typing import Callable

from sqlalchemy import case, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from signage_api.db import SessionLocal
from signage_api.models.device_config import DeviceConfigRow
from signage_api.schemas.signage import DeviceConfig, ScreenConfig, StoredDeviceConfig
from signage_api.services.errors import ConfigNotFound, StorageUnavailable
from signage_api.services.normalize import normalize_device_id

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class KeyLocks:
    """Per-key locks that live only while some writer holds a reference."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def for_key(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock


def _to_record(row: DeviceConfigRow) -> StoredDeviceConfig:
    return StoredDeviceConfig(
        web_url=row.web_url or "",
        video_url=row.video_url or "",
        layout=row.layout,
        screen=ScreenConfig(
            orientation=row.orientation,
            split_ratio=row.split_ratio,
            gap_px=row.gap_px,
            padding_px=row.padding_px,
        ),
        updated_at=int(row.updated_at or 0),
    )


class ConfigStore:
    """Keyed persistent map of device id -> display configuration.

    Records handed out are frozen snapshots built inside a single
    transaction, so callers never see a row half-way through a replace.
    """

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock
        self._key_locks = KeyLocks()

    def _fail(self, db: Session, operation: str) -> StorageUnavailable:
        db.rollback()
        logger.exception("config store %s failed", operation)
        return StorageUnavailable(f"Configuration storage is unavailable ({operation})")

    def get_all(self) -> dict[str, StoredDeviceConfig]:
        db = self._session_factory()
        try:
            rows = db.execute(select(DeviceConfigRow).order_by(DeviceConfigRow.device_id)).scalars().all()
            return {row.device_id: _to_record(row) for row in rows}
        except SQLAlchemyError as exc:
            raise self._fail(db, "get_all") from exc
        finally:
            db.close()

    def get_one(self, device_id: str) -> StoredDeviceConfig:
        db = self._session_factory()
        try:
            row = db.get(DeviceConfigRow, device_id)
            if row is None:
                raise ConfigNotFound(device_id)
            return _to_record(row)
        except SQLAlchemyError as exc:
            raise self._fail(db, "get_one") from exc
        finally:
            db.close()

    def count(self) -> int:
        db = self._session_factory()
        try:
            return db.execute(select(func.count()).select_from(DeviceConfigRow)).scalar_one()
        except SQLAlchemyError as exc:
            raise self._fail(db, "count") from exc
        finally:
            db.close()

    def upsert(self, device_id: str, config: DeviceConfig) -> StoredDeviceConfig:
        device_id = normalize_device_id(device_id)
        with self._key_locks.for_key(device_id):
            db = self._session_factory()
            try:
                record = self._write(db, device_id, config)
                db.commit()
            except SQLAlchemyError as exc:
                raise self._fail(db, "upsert") from exc
            finally:
                db.close()
        logger.info("device config upserted device_id=%s updated_at=%s", device_id, record.updated_at)
        return record

    def _write(self, db: Session, device_id: str, config: DeviceConfig) -> StoredDeviceConfig:
        dialect = db.get_bind().dialect.name
        insert = _DIALECT_INSERTS.get(dialect)
        if insert is None:
            raise StorageUnavailable(f"Unsupported database dialect: {dialect}")

        table = DeviceConfigRow.__table__
        stmt = insert(table).values(
            device_id=device_id,
            web_url=config.web_url,
            video_url=config.video_url,
            layout=config.layout,
            orientation=config.screen.orientation,
            split_ratio=config.screen.split_ratio,
            gap_px=config.screen.gap_px,
            padding_px=config.screen.padding_px,
            updated_at=int(self._clock()),
        )
        excluded = stmt.excluded
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.device_id],
            set_={
                "web_url": excluded.web_url,
                "video_url": excluded.video_url,
                "layout": excluded.layout,
                "orientation": excluded.orientation,
                "split_ratio": excluded.split_ratio,
                "gap_px": excluded.gap_px,
                "padding_px": excluded.padding_px,
                # never move a record's timestamp backwards
                "updated_at": case(
                    (excluded.updated_at > table.c.updated_at, excluded.updated_at),
                    else_=table.c.updated_at,
                ),
            },
        )
        db.execute(stmt)
        row = db.execute(
            select(DeviceConfigRow)
            .where(DeviceConfigRow.device_id == device_id)
            .execution_options(populate_existing=True)
        ).scalar_one()
        return _to_record(row)


config_store = ConfigStore()


def get_store() -> ConfigStore:
    return config_store
