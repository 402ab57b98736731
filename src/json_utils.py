import json


def safe_load_json(raw: bytes | str | None) -> object | None:
    """
    Decode a stored JSON value safely.

    - Never crash
    - Never return partial garbage
    - None / empty / undecodable bytes / invalid JSON -> None

    Callers decide what an absent value defaults to.
    """

    if raw is None:
        return None

    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return None


def dump_json(value: object) -> bytes:
    """Encode a value for storage (compact, UTF-8)."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
