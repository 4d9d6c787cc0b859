from typing import Any

import msgspec

from sqlsplit.exceptions import SerializationError

__all__ = ("encode_json",)

_encoder = msgspec.json.Encoder()


def encode_json(data: Any) -> str:
    """Encode ``data`` as a JSON string.

    Raises:
        SerializationError: If ``data`` holds a value msgspec cannot encode.
    """
    try:
        return _encoder.encode(data).decode("utf-8")
    except (TypeError, msgspec.EncodeError) as e:
        msg = f"Unable to encode {type(data).__name__} as JSON"
        raise SerializationError(msg) from e
