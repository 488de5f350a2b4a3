"""
Storing/restoring filter pairs.

A codec turns cached values into bytes and back. Adapters accept a codec
name, or explicit storing/restoring callables that override it.
"""

from __future__ import annotations

import json
import pickle
from typing import Any, Callable, NamedTuple

import orjson

from nscache.exceptions import ConfigurationError

StoringFilter = Callable[[Any], bytes]
RestoringFilter = Callable[[bytes], Any]


class Codec(NamedTuple):
    """An encode/decode pair."""

    encode: StoringFilter
    decode: RestoringFilter


def _json_encode(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":")).encode("utf-8")


def _json_decode(data: bytes) -> Any:
    return json.loads(data.decode("utf-8"))


CODECS: dict[str, Codec] = {
    "pickle": Codec(pickle.dumps, pickle.loads),
    "json": Codec(_json_encode, _json_decode),
    "orjson": Codec(orjson.dumps, orjson.loads),
}

DEFAULT_CODEC = "pickle"


def get_codec(name: str) -> Codec:
    """Look up a codec by name.

    Raises:
        ConfigurationError: If no codec is registered under the name.
    """
    try:
        return CODECS[str(name).lower()]
    except KeyError:
        raise ConfigurationError(
            f'Unknown codec "{name}"',
            context={"available": sorted(CODECS)},
        ) from None
