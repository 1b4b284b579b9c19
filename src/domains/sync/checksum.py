# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Snapshot checksums.

The checksum is a cheap integrity signal, not a security feature: the
payload is serialized to a canonical JSON string and folded into a 32-bit
rolling hash (``hash = hash * 31 + code_unit``). Offline clients compute the
same digest in JavaScript, so the serialization mirrors ``JSON.stringify``
(compact separators, key insertion order, UTF-16 code units, millisecond
ISO dates) and the result is rendered like ``Number.prototype.toString(16)``.

Example:
    >>> compute_checksum([])
    'b62'
    >>> compute_checksum({})
    'f62'
"""

import json
import logging
import math
from collections.abc import Iterator, Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from src.domains.sync.models import SyncSnapshot
from src.utils.datetime import format_iso_millis

logger = logging.getLogger(__name__)

# Returned when the payload cannot be serialized. It never equals a real
# digest, so a snapshot carrying it always shows up as a data conflict.
CHECKSUM_ERROR = "error"

_UINT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def _normalize(value: Any, seen: set[int]) -> Any:
    """Convert a payload into plain JSON types, the way JSON.stringify sees it.

    Raises:
        ValueError: On circular references.
        TypeError: On values JSON cannot represent.
    """
    if isinstance(value, BaseModel):
        return _normalize(value.model_dump(by_alias=True), seen)
    if isinstance(value, Enum):
        return _normalize(value.value, seen)
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return value
    if isinstance(value, datetime):
        return format_iso_millis(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)

    if isinstance(value, (Mapping, list, tuple)):
        marker = id(value)
        if marker in seen:
            raise ValueError("Circular reference detected")
        seen.add(marker)
        try:
            if isinstance(value, Mapping):
                return {str(k): _normalize(v, seen) for k, v in value.items()}
            return [_normalize(item, seen) for item in value]
        finally:
            seen.discard(marker)

    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def canonical_json(value: Any) -> str:
    """Serialize a value to its canonical string form.

    Args:
        value: Any JSON-serializable value (pydantic models and datetimes
            included).

    Returns:
        Compact JSON string.

    Raises:
        ValueError: On circular references.
        TypeError: On unserializable values.
    """
    return _dump(_normalize(value, set()))


def format_js_number(value: float) -> str:
    """Render a finite number the way JavaScript's ``Number.prototype.toString`` does.

    Integral values lose their fraction, and exponent notation is used from
    ``1e21`` up and below ``1e-6``, written ``1e+21`` and ``1e-7``.

    Args:
        value: Finite float or int.

    Returns:
        Decimal string.
    """
    if value == 0:
        return "0"

    _, digits, exponent = Decimal(repr(float(abs(value)))).as_tuple()
    digits = list(digits)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1

    text = "".join(str(d) for d in digits)
    k = len(text)
    n = exponent + k  # value == 0.<text> * 10**n
    prefix = "-" if value < 0 else ""

    if k <= n <= 21:
        return prefix + text + "0" * (n - k)
    if 0 < n <= 21:
        return prefix + text[:n] + "." + text[n:]
    if -6 < n <= 0:
        return prefix + "0." + "0" * -n + text

    e = n - 1
    mantissa = text if k == 1 else text[0] + "." + text[1:]
    return f"{prefix}{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"


def _dump(value: Any) -> str:
    """Serialize normalized JSON values with compact separators."""
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, int):
        return str(value) if abs(value) < 10**21 else format_js_number(float(value))
    if isinstance(value, float):
        return format_js_number(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, dict):
        return "{" + ",".join(f"{_dump(k)}:{_dump(v)}" for k, v in value.items()) + "}"
    return "[" + ",".join(_dump(item) for item in value) + "]"


def _utf16_code_units(text: str) -> Iterator[int]:
    for char in text:
        code_point = ord(char)
        if code_point > 0xFFFF:
            code_point -= 0x10000
            yield 0xD800 + (code_point >> 10)
            yield 0xDC00 + (code_point & 0x3FF)
        else:
            yield code_point


def rolling_hash(text: str) -> int:
    """Fold a string into a signed 32-bit polynomial hash.

    Args:
        text: Input string.

    Returns:
        Signed 32-bit integer.
    """
    value = 0
    for unit in _utf16_code_units(text):
        value = (value * 31 + unit) & _UINT32_MASK
    if value & _INT32_SIGN:
        value -= 1 << 32
    return value


def compute_checksum(data: Any) -> str:
    """Compute the checksum of a data payload.

    Never raises: a payload that cannot be serialized yields
    ``CHECKSUM_ERROR``, which callers must treat as "unknown".

    Args:
        data: Any JSON-serializable value.

    Returns:
        Hex digest (negative values carry a leading "-"), or "error".
    """
    try:
        serialized = canonical_json(data)
    except (TypeError, ValueError, RecursionError) as e:
        logger.warning("Failed to compute checksum: %s", str(e))
        return CHECKSUM_ERROR

    return format(rolling_hash(serialized), "x")


def verify_checksum(snapshot: SyncSnapshot) -> bool:
    """Check that a snapshot's checksum matches its data.

    Args:
        snapshot: Snapshot to check.

    Returns:
        False when the stored or recomputed checksum is the error sentinel,
        or when they differ.
    """
    if snapshot.checksum == CHECKSUM_ERROR:
        return False
    expected = compute_checksum(snapshot.data.to_payload())
    return expected != CHECKSUM_ERROR and expected == snapshot.checksum
