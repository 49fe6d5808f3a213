"""Decoding of msgpack parameter documents."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional

import msgpack

logger = logging.getLogger(__name__)

_UINT16_MAX = 0xFFFF


class ParamErrorKind(enum.IntEnum):
    """Reasons a parameter document fails to decode."""

    OK = 0
    OUT_OF_MEMORY = 1
    INVALID_FIRST_ELEMENT = 2
    INVALID_DATATYPE = 3
    INVALID_PM_OBJECT = 4
    INVALID_BLOB_OBJECT = 5


_MESSAGES = {
    ParamErrorKind.OK: "No errors.",
    ParamErrorKind.OUT_OF_MEMORY: "Out of memory.",
    ParamErrorKind.INVALID_FIRST_ELEMENT: "Invalid first element.",
    ParamErrorKind.INVALID_DATATYPE: "Invalid 'datatype' value.",
    ParamErrorKind.INVALID_PM_OBJECT: "Invalid 'parameters' array.",
    ParamErrorKind.INVALID_BLOB_OBJECT: "Invalid 'blob' object.",
}


def strerror(errnum) -> str:
    """Return the text describing a decode error number."""
    try:
        return _MESSAGES[ParamErrorKind(errnum)]
    except ValueError:
        return "Unknown error."


class ParamError(ValueError):
    """Raised when a parameter document cannot be decoded."""

    def __init__(self, kind: ParamErrorKind) -> None:
        super().__init__(strerror(kind))
        self.kind = kind


@dataclass
class Param:
    """One parameter: its name, raw value and data type."""

    name: Optional[str] = None
    value: Optional[bytes] = None
    type: int = 0

    @property
    def value_size(self) -> int:
        return len(self.value) if self.value is not None else 0


def _process_entry(entry: dict) -> Param:
    param = Param()
    # bit 0: dataType, bit 1: name, bit 2: value
    left = 0b111
    for key, val in entry.items():
        if not left:
            break
        if not isinstance(key, str):
            continue
        if isinstance(val, int) and not isinstance(val, bool) and val >= 0:
            if key == "dataType":
                if val > _UINT16_MAX:
                    logger.error("Invalid 'datatype' value")
                    raise ParamError(ParamErrorKind.INVALID_DATATYPE)
                param.type = val
                left &= ~0b001
            elif key == "notify_attribute":
                left = 0
        elif isinstance(val, str):
            if key == "name":
                param.name = val
                left &= ~0b010
            if key == "value":
                param.value = val.encode("utf-8", "surrogateescape")
                left &= ~0b100
    if left:
        raise ParamError(ParamErrorKind.INVALID_BLOB_OBJECT)
    return param


def decode_params(data: bytes) -> List[Param]:
    """Decode a msgpack document holding a 'parameters' array.

    Bytes after the first msgpack object are ignored. Raises ParamError
    when the document does not have the expected shape.
    """
    unpacker = msgpack.Unpacker(raw=False, unicode_errors="surrogateescape",
                                strict_map_key=False)
    unpacker.feed(bytes(data))
    try:
        root = next(unpacker)
    except StopIteration:
        raise ParamError(ParamErrorKind.INVALID_FIRST_ELEMENT) from None
    except (ValueError, msgpack.UnpackException) as exc:
        raise ParamError(ParamErrorKind.INVALID_FIRST_ELEMENT) from exc

    if not isinstance(root, dict) or not isinstance(root.get("parameters"), list):
        raise ParamError(ParamErrorKind.INVALID_FIRST_ELEMENT)

    params = []
    for entry in root["parameters"]:
        if not isinstance(entry, dict):
            logger.error("Invalid 'parameters' array")
            raise ParamError(ParamErrorKind.INVALID_PM_OBJECT)
        try:
            params.append(_process_entry(entry))
        except ParamError as exc:
            logger.error("parameter entry rejected: %s", exc)
            raise ParamError(ParamErrorKind.INVALID_BLOB_OBJECT) from exc
    return params