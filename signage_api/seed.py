import logging

from signage_api.db import Base, engine, ensure_sqlite_schema
from signage_api.models import device_config  # noqa: F401  registers the table
from signage_api.services.config_store import ConfigStore, config_store
from signage_api.services.normalize import normalize_payload

logger = logging.getLogger(__name__)

DEMO_PAYLOADS = [
    {
        "deviceId": "lobby-01",
        "webUrl": "https://example.com/dashboard",
        "videoUrl": "https://example.com/media/loop.mp4",
        "layout": "split",
        "screen": {"orientation": "row", "splitRatio": 60, "gapPx": 8, "paddingPx": 0},
    },
    {
        "deviceId": "counter-02",
        "webUrl": "https://example.com/menu",
        "videoUrl": "",
        "layout": "web_only",
    },
]


def seed(store: ConfigStore = config_store) -> None:
    Base.metadata.create_all(bind=engine)
    ensure_sqlite_schema()
    for payload in DEMO_PAYLOADS:
        device_id, config = normalize_payload(payload)
        record = store.upsert(device_id, config)
        logger.info("seeded %s (updated_at=%s)", device_id, record.updated_at)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed()
