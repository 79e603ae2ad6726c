"""
Value encoding for cache entries.

Raw values are stored as plain bytes. Everything else is stored as a
gzip-compressed JSON document, recognised on read by the gzip header.
"""
import gzip
import json
import logging
from typing import Any, Optional, Union

from pydantic import BaseModel

from memlock.errors import SerializationError

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


def encode_value(value: Any, raw: bool = False) -> bytes:
    if raw:
        if isinstance(value, bytes):
            return value
        return str(value).encode("utf-8")

    try:
        if isinstance(value, BaseModel):
            json_str = value.model_dump_json()
        else:
            json_str = json.dumps(value)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot serialize value of type {type(value).__name__}", source=e) from e
    # mtime=0 keeps the payload byte-stable for identical values
    return gzip.compress(json_str.encode("utf-8"), mtime=0)


def decode_value(data: Optional[bytes]) -> Union[Any, str, bytes, None]:
    if data is None:
        return None

    if data[:2] == GZIP_MAGIC:
        try:
            return json.loads(gzip.decompress(data).decode("utf-8"))
        except (OSError, EOFError, UnicodeDecodeError, ValueError) as e:
            logger.debug(f"Payload has a gzip header but is not a serialized value, returning raw: {e}")

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data
