"""Bracket-notation query string encoding understood by the CMS.

``{"filters": {"slug": {"$eq": "x"}}}`` becomes ``filters%5Bslug%5D%5B%24eq%5D=x``;
list items become ``key[0]``, ``key[1]`` and so on. ``None`` leaves and values
that are not scalars, lists or mappings are dropped.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence
from urllib.parse import quote

# Characters left alone by ``encodeURIComponent``.
_SAFE = "-_.!~*'()"


def _encode_component(text: str) -> str:
    return quote(text, safe=_SAFE)


def _format_scalar(value: object) -> Optional[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return str(int(value)) if value.is_integer() else repr(value)
    return None


def _key_name(path: Sequence[str]) -> str:
    head, *rest = path
    return head + "".join(f"[{segment}]" for segment in rest)


def _walk(value: Any, path: List[str], out: List[str]) -> None:
    if value is None:
        return
    if isinstance(value, Mapping):
        for key, child in value.items():
            _walk(child, [*path, str(key)], out)
        return
    if isinstance(value, (list, tuple)):
        for index, child in enumerate(value):
            _walk(child, [*path, str(index)], out)
        return
    text = _format_scalar(value)
    if text is None or not path:
        return
    out.append(f"{_encode_component(_key_name(path))}={_encode_component(text)}")


def encode_pairs(params: Optional[Mapping[str, Any]]) -> List[str]:
    """Return the encoded ``key=value`` pairs in input order."""

    pairs: List[str] = []
    if isinstance(params, Mapping):
        _walk(params, [], pairs)
    return pairs


def encode(params: Optional[Mapping[str, Any]]) -> str:
    """Serialise nested *params* into a query string without the leading ``?``."""

    return "&".join(encode_pairs(params))


def query_suffix(params: Optional[Mapping[str, Any]]) -> str:
    encoded = encode(params)
    return f"?{encoded}" if encoded else ""


__all__ = ["encode", "encode_pairs", "query_suffix"]
