import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from signage_api.schemas.signage import StoredDeviceConfig
from signage_api.services.config_store import ConfigStore, get_store
from signage_api.services.errors import (
    ConfigNotFound,
    InvalidIdentifier,
    SignageConfigError,
    StorageUnavailable,
)
from signage_api.services.normalize import normalize_payload

router = APIRouter(prefix="/signage", tags=["signage"])
logger = logging.getLogger(__name__)


def _http_error(status_code: int, exc: SignageConfigError) -> HTTPException:
    return HTTPException(status_code=status_code, detail=exc.as_detail())


@router.get("/configs", response_model=dict[str, StoredDeviceConfig])
def list_configs(store: ConfigStore = Depends(get_store)):
    try:
        return store.get_all()
    except StorageUnavailable as exc:
        raise _http_error(503, exc) from exc


@router.get("/config/{device_id}", response_model=StoredDeviceConfig)
def get_config(device_id: str, store: ConfigStore = Depends(get_store)):
    try:
        return store.get_one(device_id)
    except ConfigNotFound as exc:
        raise _http_error(404, exc) from exc
    except StorageUnavailable as exc:
        raise _http_error(503, exc) from exc


# Admin surfaces have historically called both paths; they are the same write.
@router.put("/config", response_model=StoredDeviceConfig)
@router.put("/configs", response_model=StoredDeviceConfig, include_in_schema=False)
def upsert_config(payload: Any = Body(None), store: ConfigStore = Depends(get_store)):
    try:
        device_id, config = normalize_payload(payload)
    except InvalidIdentifier as exc:
        logger.info("rejected config payload: %s", exc.message)
        raise _http_error(400, exc) from exc
    try:
        return store.upsert(device_id, config)
    except StorageUnavailable as exc:
        raise _http_error(503, exc) from exc
