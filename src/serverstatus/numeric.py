"""Integer parsing and saturating arithmetic for kernel counters."""

import math
import time
from collections.abc import Iterator

from serverstatus.errors import MalformedInteger, MissingField

U64_MAX = 2**64 - 1


def _clamp(value: int) -> int:
    return min(max(value, 0), U64_MAX)


def saturating_add(*values: int) -> int:
    """Sum counters, saturating at ``U64_MAX``."""
    return _clamp(sum(values))


def saturating_sub(minuend: int, subtrahend: int) -> int:
    """Subtract counters, clamping at zero when the counter went backwards."""
    return _clamp(minuend - subtrahend)


def saturating_mul(left: int, right: int) -> int:
    return _clamp(left * right)


def _parse_uint(token: str) -> int | None:
    # str.isdigit() alone also accepts non-ASCII digits such as "²"
    if not (token.isascii() and token.isdigit()):
        return None
    value = int(token)
    if value > U64_MAX:
        return None
    return value


def parse_required_uint(tokens: Iterator[str]) -> int:
    """
    Parse the next token as an unsigned 64-bit integer.

    Raises:
        MissingField: No token remains.
        MalformedInteger: The token is not a base-10 integer in u64 range.
    """
    token = next(tokens, None)
    if token is None:
        raise MissingField("missing integer field")
    value = _parse_uint(token)
    if value is None:
        raise MalformedInteger(f"could not parse integer from {token!r}")
    return value


def parse_optional_uint(tokens: Iterator[str]) -> int:
    """
    Parse the next token as an unsigned 64-bit integer, or 0 if it is garbage.

    The column itself must still be present; a missing token raises
    MissingField because it means the line format changed.
    """
    token = next(tokens, None)
    if token is None:
        raise MissingField("missing integer field")
    value = _parse_uint(token)
    return 0 if value is None else value


def sanitized_ratio(numerator: int, denominator: int) -> float | None:
    """
    Divide two counters into a fraction between 0.0 and 1.0.

    Returns None when the denominator is zero or the result is not finite.
    """
    if denominator == 0:
        return None
    ratio = numerator / denominator
    if not math.isfinite(ratio):
        return None
    return min(max(ratio, 0.0), 1.0)


def unix_millis() -> int:
    """Milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000
