"""JSON file persistence for application records and alerts."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Iterable

from filelock import FileLock
from pydantic import TypeAdapter, ValidationError

from .models import Alert, ApplicationRecord

logger = logging.getLogger(__name__)

LOCK_TIMEOUT = 10

_records_adapter = TypeAdapter(list[ApplicationRecord])
_alerts_adapter = TypeAdapter(list[Alert])


class StoreError(Exception):
    """Raised when a stored or imported file cannot be read."""


def _lock_for(path: Path) -> FileLock:
    return FileLock(str(path) + ".lock", timeout=LOCK_TIMEOUT)


def _read_json(path: Path) -> Any:
    if not path.exists():
        return []
    with _lock_for(path):
        text = path.read_text(encoding="utf-8")
    if not text.strip():
        return []
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise StoreError(f"Corrupt data file {path}: {e}") from e


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    with _lock_for(path):
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, path)


def load_records(path: Path) -> list[ApplicationRecord]:
    """Load application records. A missing file is an empty collection."""
    try:
        records = _records_adapter.validate_python(_read_json(path))
    except ValidationError as e:
        raise StoreError(f"Invalid records in {path}: {e}") from e
    logger.debug(f"Loaded {len(records)} records from {path}")
    return records


def save_records(path: Path, records: Iterable[ApplicationRecord]) -> None:
    records = list(records)
    _write_json(path, _records_adapter.dump_python(records, mode="json", by_alias=True))
    logger.debug(f"Saved {len(records)} records to {path}")


def load_alerts(path: Path) -> list[Alert]:
    """Load the alert collection. A missing file is an empty collection."""
    try:
        alerts = _alerts_adapter.validate_python(_read_json(path))
    except ValidationError as e:
        raise StoreError(f"Invalid alerts in {path}: {e}") from e
    logger.debug(f"Loaded {len(alerts)} alerts from {path}")
    return alerts


def save_alerts(path: Path, alerts: Iterable[Alert]) -> None:
    alerts = list(alerts)
    _write_json(path, _alerts_adapter.dump_python(alerts, mode="json", by_alias=True))
    logger.debug(f"Saved {len(alerts)} alerts to {path}")


def import_records(
    existing: Iterable[ApplicationRecord], path: Path
) -> list[ApplicationRecord]:
    """Append records from an exported JSON file to ``existing``."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        imported = _records_adapter.validate_python(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise StoreError(
            "Error importing file. Please make sure it's a valid JSON file."
        ) from e

    logger.info(f"Imported {len(imported)} records from {path}")
    return list(existing) + imported


def export_records(path: Path, records: Iterable[ApplicationRecord]) -> Path:
    records = list(records)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(
            _records_adapter.dump_python(records, mode="json", by_alias=True),
            f,
            indent=2,
        )
    logger.info(f"Exported {len(records)} records to {path}")
    return path
