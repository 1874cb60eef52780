"""orjson encoding for API responses and cached status payloads.

Amounts stay ``Decimal`` inside the service and leave it as exact strings
("1.10", never 1.1000000000000001). Dates and datetimes are handled by
orjson itself; aware datetimes in UTC render with a ``Z`` suffix.
"""

from decimal import Decimal
from typing import Any

import orjson
from fastapi.responses import JSONResponse

_OPTIONS = orjson.OPT_UTC_Z | orjson.OPT_NON_STR_KEYS


def _encode_decimal(value: Any) -> str:
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Cannot encode {type(value).__name__} as JSON")


def json_bytes(data: Any) -> bytes:
    return orjson.dumps(data, default=_encode_decimal, option=_OPTIONS)


def json_dumps(data: Any) -> str:
    return json_bytes(data).decode()


def json_loads(data: str | bytes) -> Any:
    return orjson.loads(data)


class ORJSONResponse(JSONResponse):
    """Default response class of the app."""

    def render(self, content: Any) -> bytes:
        return json_bytes(content)
