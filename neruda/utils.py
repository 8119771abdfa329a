from __future__ import annotations

import datetime as dt
import hashlib
import sys


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base
    return f"{base}/{path}"


def md5_hex(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def aware(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.astimezone()
    return value


def rfc3339(value: dt.datetime) -> str:
    return aware(value).replace(microsecond=0).isoformat()


def warn(message: str) -> None:
    print(f"Warning: {message}", file=sys.stderr)


def error(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
