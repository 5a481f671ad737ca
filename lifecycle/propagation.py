"""
Trace Propagation Helpers

Recovers upstream trace headers from a raw invocation event and parses
identifier values the way tracers serialize them.
"""

import json
import logging
import random
import string
from typing import Any, Optional

from pydantic import ValidationError

from schemas.invocation import InvocationPayload


logger = logging.getLogger(__name__)


TRACE_ID_HEADER = "x-datadog-trace-id"
PARENT_ID_HEADER = "x-datadog-parent-id"
SAMPLING_PRIORITY_HEADER = "x-datadog-sampling-priority"

MAX_UINT64 = (1 << 64) - 1
MIN_INT64 = -(1 << 63)
MAX_INT64 = (1 << 63) - 1

_DIGITS = set(string.hexdigits + "_")
_PREFIX_BASES = {"0x": 16, "0o": 8, "0b": 2}

# Not for security use
_rng = random.Random()


def random_id() -> int:
    """Uniform 64-bit identifier."""
    return _rng.getrandbits(64)


def extract_json_object(raw_payload: str) -> Optional[str]:
    """
    Return the first balanced {...} substring of the payload.

    Braces inside JSON string literals are ignored. Returns None when the
    payload has no opening brace or the first object never closes.
    """
    start = raw_payload.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(raw_payload)):
        char = raw_payload[index]

        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return raw_payload[start:index + 1]

    return None


def convert_raw_payload(raw_payload: str) -> InvocationPayload:
    """
    Decode the header mapping embedded in a raw invocation event.

    Any failure is logged and yields a payload without headers.
    """
    candidate = extract_json_object(raw_payload or "")
    if candidate is None:
        logger.debug("[TRACE] No JSON object found in the invocation event payload")
        return InvocationPayload()

    try:
        decoded = json.loads(candidate)
    except ValueError as e:
        logger.debug(f"[TRACE] Could not unmarshal the invocation event payload: {e}")
        return InvocationPayload()

    if not isinstance(decoded, dict):
        return InvocationPayload()

    try:
        return InvocationPayload.model_validate(decoded)
    except ValidationError as e:
        logger.debug(f"[TRACE] Invocation event headers are malformed: {e}")
        return InvocationPayload()


def _parse_integer(text: Any, signed: bool) -> int:
    """
    Parse an integer literal with its base inferred from the prefix.

    0x/0o/0b select hex, octal and binary; a bare leading zero selects octal.
    Header values arrive as strings; anything else is rejected.
    """
    if not isinstance(text, str):
        raise ValueError(f"not a string: {text!r}")
    if not text:
        raise ValueError("empty value")

    body = text
    sign = 1
    if body[0] in "+-":
        if not signed:
            raise ValueError(f"unsigned value has a sign: {text!r}")
        sign = -1 if body[0] == "-" else 1
        body = body[1:]

    prefix = body[:2].lower()
    if prefix in _PREFIX_BASES:
        base = _PREFIX_BASES[prefix]
        digits = body[2:]
    elif len(body) > 1 and body[0] == "0":
        base = 8
        digits = body[1:]
    else:
        base = 10
        digits = body

    if not digits or not set(digits) <= _DIGITS:
        raise ValueError(f"invalid integer: {text!r}")

    return sign * int(digits, base)


def parse_uint64(text: Any) -> int:
    """Parse an unsigned 64-bit identifier. Raises ValueError."""
    value = _parse_integer(text, signed=False)
    if value > MAX_UINT64:
        raise ValueError(f"value out of range: {text!r}")
    return value


def parse_int64(text: Any) -> int:
    """Parse a signed 64-bit value. Raises ValueError."""
    value = _parse_integer(text, signed=True)
    if not MIN_INT64 <= value <= MAX_INT64:
        raise ValueError(f"value out of range: {text!r}")
    return value
