"""DB utilities: stable JSON serialization for TEXT columns."""
import json
from datetime import date, datetime, timezone
from typing import Any


def json_serialize(obj: Any) -> str | None:
    """Stable JSON for DB TEXT columns: sort_keys, no extra whitespace, UTC datetimes."""
    if obj is None:
        return None
    return json.dumps(
        obj,
        ensure_ascii=False,
        separators=(",", ":"),
        sort_keys=True,
        default=_json_default,
    )


def json_deserialize(value: Any) -> Any:
    """Inverse of json_serialize for DTO validators. Empty strings read as None."""
    if value is None:
        return None
    if isinstance(value, str):
        return json.loads(value) if value.strip() else None
    return value


def _json_default(o: Any) -> Any:
    if isinstance(o, (datetime, date)):
        if isinstance(o, datetime) and o.tzinfo is None:
            o = o.replace(tzinfo=timezone.utc)
        elif isinstance(o, datetime):
            o = o.astimezone(timezone.utc)
        return o.isoformat()
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")
