"""Best-effort conversion of Postman collections into OpenAPI 3.0.3 documents.

The conversion never fails: missing names, URLs or bodies fall back to
defaults, and no request or response schemas are inferred. Two requests that
map to the same path and method overwrite each other; the one processed last
wins.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlsplit

from ..utils.logging import increment_counter

OPENAPI_VERSION = "3.0.3"
DEFAULT_TITLE = "API Documentation"
DEFAULT_DESCRIPTION = "API documentation converted from a Postman collection."
DEFAULT_VERSION = "1.0.0"
DEFAULT_SERVER = "https://api.example.com"
PLACEHOLDER = "placeholder"

_TEMPLATE_VARIABLE = re.compile(r"\{\{\s*([^{}]*?)\s*\}\}")
_WHITESPACE = re.compile(r"\s+")
_BODY_METHODS = frozenset({"post", "put", "patch"})


@dataclass(frozen=True, slots=True)
class Leaf:
    """A concrete request."""

    name: str
    method: str
    url: object
    body: Optional[Mapping[str, Any]] = None
    description: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Folder:
    name: str
    children: Tuple["PostmanNode", ...]


PostmanNode = Union[Leaf, Folder]
Operation = Tuple[str, str, Dict[str, Any]]


def slugify(name: str) -> str:
    """Lowercase *name* and turn whitespace runs into hyphens."""

    return _WHITESPACE.sub("-", name.strip().lower())


def _description(value: object) -> Optional[str]:
    if isinstance(value, str):
        return value or None
    if isinstance(value, Mapping):
        content = value.get("content")
        return content if isinstance(content, str) and content else None
    return None


def parse_node(item: object) -> Optional[PostmanNode]:
    """Parse one collection item; items that are neither request nor folder yield ``None``."""

    if not isinstance(item, Mapping):
        return None
    name = item.get("name") if isinstance(item.get("name"), str) else ""
    request = item.get("request")
    if isinstance(request, str):
        return Leaf(name=name, method="get", url=request)
    if isinstance(request, Mapping):
        method = request.get("method")
        body = request.get("body")
        return Leaf(
            name=name,
            method=method.lower() if isinstance(method, str) and method else "get",
            url=request.get("url"),
            body=body if isinstance(body, Mapping) and body else None,
            description=_description(request.get("description")) or _description(item.get("description")),
        )
    children = item.get("item")
    if isinstance(children, list):
        return Folder(name=name, children=parse_items(children))
    return None


def parse_items(items: object) -> Tuple[PostmanNode, ...]:
    if not isinstance(items, list):
        return ()
    return tuple(node for node in map(parse_node, items) if node is not None)


# ----------------------------------------------------------------------
# URLs
# ----------------------------------------------------------------------


def _variables(collection: Mapping[str, Any]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for entry in collection.get("variable") or ():
        if not isinstance(entry, Mapping):
            continue
        key, value = entry.get("key"), entry.get("value")
        if isinstance(key, str) and key and isinstance(value, (str, int, float)) and value != "":
            values[key] = str(value)
    return values


def _substitute(raw: str, variables: Mapping[str, str]) -> str:
    def _replace(match: "re.Match[str]") -> str:
        return variables.get(match.group(1), PLACEHOLDER)

    # Variables may expand to further templates; a second pass flattens those.
    return _TEMPLATE_VARIABLE.sub(_replace, _TEMPLATE_VARIABLE.sub(_replace, raw))


def _raw_url(url: object) -> Optional[str]:
    if isinstance(url, str):
        return url or None
    if not isinstance(url, Mapping):
        return None
    raw = url.get("raw")
    if isinstance(raw, str) and raw:
        return raw
    host = url.get("host")
    if isinstance(host, list):
        host = ".".join(str(part) for part in host)
    if not isinstance(host, str) or not host:
        return None
    protocol = url.get("protocol") if isinstance(url.get("protocol"), str) else "https"
    return f"{protocol}://{host}{_structured_path(url) or ''}"


def _structured_path(url: Mapping[str, Any]) -> Optional[str]:
    path = url.get("path")
    if isinstance(path, list):
        segments = [str(segment) for segment in path if segment not in (None, "")]
        return "/" + "/".join(segments)
    if isinstance(path, str) and path:
        return path if path.startswith("/") else f"/{path}"
    return None


def _parse(url: object, variables: Mapping[str, str]) -> Optional[Tuple[str, str, str]]:
    """Return ``(scheme, netloc, path)`` for an absolute request URL."""

    raw = _raw_url(url)
    if raw is None:
        return None
    try:
        parts = urlsplit(_substitute(raw, variables))
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return parts.scheme, parts.netloc, parts.path


def find_base_url(nodes: Tuple[PostmanNode, ...], variables: Mapping[str, str]) -> Optional[str]:
    """Depth-first search for the first request whose URL parses; return scheme and host."""

    for node in nodes:
        if isinstance(node, Folder):
            found = find_base_url(node.children, variables)
            if found is not None:
                return found
            continue
        parsed = _parse(node.url, variables)
        if parsed is not None:
            scheme, netloc, _ = parsed
            return f"{scheme}://{netloc}"
    return None


# ----------------------------------------------------------------------
# operations
# ----------------------------------------------------------------------


def _join(prefix: str, path: str) -> str:
    joined = f"{prefix.rstrip('/')}/{path.lstrip('/')}"
    if len(joined) > 1:
        joined = joined.rstrip("/")
    return joined or "/"


def _operation_path(leaf: Leaf, variables: Mapping[str, str]) -> str:
    parsed = _parse(leaf.url, variables)
    if parsed is not None:
        return parsed[2] or "/"
    if isinstance(leaf.url, Mapping):
        structured = _structured_path(leaf.url)
        if structured:
            return _substitute(structured, variables)
    return "/" + (slugify(leaf.name) or "request")


def _query_parameters(url: object) -> List[Dict[str, Any]]:
    if not isinstance(url, Mapping):
        return []
    parameters: List[Dict[str, Any]] = []
    for entry in url.get("query") or ():
        if not isinstance(entry, Mapping):
            continue
        key = entry.get("key")
        if not isinstance(key, str) or not key:
            continue
        parameter: Dict[str, Any] = {
            "name": key,
            "in": "query",
            "required": False,
            "schema": {"type": "string"},
            "example": entry.get("value"),
        }
        description = _description(entry.get("description"))
        if description:
            parameter["description"] = description
        parameters.append(parameter)
    return parameters


def _body_example(body: Mapping[str, Any]) -> object:
    mode = body.get("mode")
    if isinstance(mode, str) and mode in body:
        return body[mode]
    return body.get("raw")


def _responses() -> Dict[str, Any]:
    return {
        "200": {
            "description": "Successful response",
            "content": {
                "application/json": {
                    "schema": {
                        "type": "object",
                        "properties": {
                            "message": {"type": "string", "example": "Success"},
                        },
                    }
                }
            },
        },
        "400": {"description": "Bad request"},
        "500": {"description": "Internal server error"},
    }


def build_operation(leaf: Leaf, folders: Tuple[str, ...]) -> Dict[str, Any]:
    operation: Dict[str, Any] = {
        "summary": leaf.name or leaf.method.upper(),
        "description": leaf.description or "",
        "responses": _responses(),
    }
    if folders:
        operation["tags"] = [folders[0]]
    parameters = _query_parameters(leaf.url)
    if parameters:
        operation["parameters"] = parameters
    if leaf.method in _BODY_METHODS and leaf.body is not None:
        operation["requestBody"] = {
            "content": {
                "application/json": {
                    "schema": {"type": "object", "example": _body_example(leaf.body)},
                }
            }
        }
    return operation


def collect_operations(
    nodes: Tuple[PostmanNode, ...],
    variables: Mapping[str, str],
    *,
    prefix: str = "",
    folders: Tuple[str, ...] = (),
) -> List[Operation]:
    """Flatten the tree into ``(path, method, operation)`` triples in document order."""

    operations: List[Operation] = []
    for node in nodes:
        if isinstance(node, Folder):
            segment = slugify(node.name)
            child_prefix = _join(prefix, segment) if segment else prefix
            operations.extend(
                collect_operations(
                    node.children,
                    variables,
                    prefix=child_prefix,
                    folders=(*folders, node.name),
                )
            )
            continue
        path = _join(prefix, _operation_path(node, variables))
        operations.append((path, node.method, build_operation(node, folders)))
    return operations


def _version(value: object) -> str:
    if isinstance(value, str) and value:
        return value
    if isinstance(value, Mapping):
        parts = [value.get(key) for key in ("major", "minor", "patch")]
        if all(isinstance(part, int) for part in parts):
            return ".".join(str(part) for part in parts)
    return DEFAULT_VERSION


def convert(collection: object) -> Dict[str, Any]:
    """Convert a Postman collection into an OpenAPI document."""

    if not isinstance(collection, Mapping):
        collection = {}
    info = collection.get("info") if isinstance(collection.get("info"), Mapping) else {}
    variables = _variables(collection)
    nodes = parse_items(collection.get("item"))

    paths: Dict[str, Dict[str, Any]] = {}
    for path, method, operation in collect_operations(nodes, variables):
        paths.setdefault(path, {})[method] = operation

    name = info.get("name")
    increment_counter("postman.converted")
    return {
        "openapi": OPENAPI_VERSION,
        "info": {
            "title": name if isinstance(name, str) and name else DEFAULT_TITLE,
            "description": _description(info.get("description")) or DEFAULT_DESCRIPTION,
            "version": _version(info.get("version")),
        },
        "servers": [
            {"url": find_base_url(nodes, variables) or DEFAULT_SERVER, "description": "API server"}
        ],
        "paths": paths,
        "components": {"schemas": {}},
    }


__all__ = [
    "DEFAULT_SERVER",
    "Folder",
    "Leaf",
    "OPENAPI_VERSION",
    "PostmanNode",
    "collect_operations",
    "convert",
    "find_base_url",
    "parse_items",
    "parse_node",
    "slugify",
]
