"""FrontmatterDocument codec: manifest-style metadata header + free-text body.

Document layout::

    ---
    date: 2025-06-01
    mood: 7
    wins:
      - shipped X
    tags: [family, work]
    ---

    Free text body.

The metadata block is parsed in a single line-oriented pass that tracks the
key currently awaiting ``- item`` continuation lines. Scalars that lexically
parse as numbers become ``int``/``float``; everything else stays text.

INVARIANT: ``serialize(parse(text)) == text`` for any *text* produced by
:func:`serialize_document`. Hand-written input in other styles (inline
lists, unquoted odd strings) parses but is re-emitted in canonical form.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

from mykb.domain.errors import MalformedError

DELIMITER = "---"

_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*$")
_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?(\d+\.\d+([eE][-+]?\d+)?|\d+[eE][-+]?\d+)$")

MetadataValue = str | int | float | list[str]


@dataclass
class FrontmatterDocument:
    """Ordered metadata plus free-text body."""

    metadata: dict[str, Any] = field(default_factory=dict)
    body: str = ""

    def get_list(self, key: str) -> list[str]:
        """Return ``metadata[key]`` as a list (scalars are wrapped, missing is empty)."""
        value = self.metadata.get(key)
        if value is None:
            return []
        if isinstance(value, list):
            return value
        return [str(value)]


# ---------------------------------------------------------------------------
# Scalar handling
# ---------------------------------------------------------------------------


def coerce_scalar(raw: str) -> str | int | float:
    """Turn a raw metadata value into ``int``/``float`` when it looks numeric."""
    if len(raw) >= 2 and raw.startswith('"') and raw.endswith('"'):
        try:
            decoded = json.loads(raw)
        except ValueError:
            return raw
        return decoded if isinstance(decoded, str) else raw
    if _INT_RE.match(raw):
        return int(raw)
    if _FLOAT_RE.match(raw):
        return float(raw)
    return raw


def _needs_quotes(text: str, *, numeric_sensitive: bool) -> bool:
    if text == "" or text != text.strip():
        return True
    if "\n" in text or "\r" in text:
        return True
    if text.startswith(('"', "[")):
        return True
    if numeric_sensitive and (_INT_RE.match(text) or _FLOAT_RE.match(text)):
        return True
    return False


def _format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    text = str(value)
    if _needs_quotes(text, numeric_sensitive=True):
        return json.dumps(text, ensure_ascii=False)
    return text


def _format_item(value: Any) -> str:
    text = str(value)
    if _needs_quotes(text, numeric_sensitive=False):
        return json.dumps(text, ensure_ascii=False)
    return text


def _parse_item(raw: str) -> str:
    if len(raw) >= 2 and raw.startswith('"') and raw.endswith('"'):
        try:
            decoded = json.loads(raw)
        except ValueError:
            return raw
        if isinstance(decoded, str):
            return decoded
    return raw


def _parse_inline_list(raw: str) -> list[str]:
    inner = raw[1:-1].strip()
    if not inner:
        return []
    return [_parse_item(part.strip()) for part in inner.split(",")]


# ---------------------------------------------------------------------------
# Metadata block
# ---------------------------------------------------------------------------


def parse_metadata(block: str) -> dict[str, Any]:
    """Parse the metadata lines between the frontmatter delimiters."""
    metadata: dict[str, Any] = {}
    pending_key: str | None = None

    for lineno, raw_line in enumerate(block.split("\n"), start=1):
        line = raw_line.rstrip("\r")
        if not line.strip():
            continue

        if line[0] in (" ", "\t"):
            stripped = line.strip()
            if pending_key is None or not (stripped == "-" or stripped.startswith("- ")):
                msg = f"Unexpected indented line {lineno}: {line!r}"
                raise MalformedError(msg)
            metadata[pending_key].append(_parse_item(stripped[1:].strip()))
            continue

        key, sep, rest = line.partition(":")
        key = key.strip()
        if not sep or not _KEY_RE.match(key):
            msg = f"Malformed metadata line {lineno}: {line!r}"
            raise MalformedError(msg)
        if key in metadata:
            msg = f"Duplicate metadata key {key!r} on line {lineno}"
            raise MalformedError(msg)

        value = rest.strip()
        if not value:
            metadata[key] = []
            pending_key = key
        elif value.startswith("[") and value.endswith("]"):
            metadata[key] = _parse_inline_list(value)
            pending_key = None
        else:
            metadata[key] = coerce_scalar(value)
            pending_key = None

    return metadata


def serialize_metadata(metadata: dict[str, Any]) -> str:
    """Render metadata in canonical form (no delimiters, trailing newline per line)."""
    lines: list[str] = []
    for key, value in metadata.items():
        if not _KEY_RE.match(key):
            msg = f"Invalid metadata key: {key!r}"
            raise ValueError(msg)
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            lines.append(f"{key}:")
            lines.extend(f"  - {_format_item(item)}" for item in value)
        else:
            lines.append(f"{key}: {_format_scalar(value)}")
    return "".join(f"{line}\n" for line in lines)


# ---------------------------------------------------------------------------
# Whole documents
# ---------------------------------------------------------------------------


def parse_document(text: str) -> FrontmatterDocument:
    """Split *text* into metadata and body.

    Text that does not open with a ``---`` line, or never closes it, is
    returned as body with empty metadata.
    """
    lines = text.split("\n")
    if not lines or lines[0].rstrip("\r") != DELIMITER:
        return FrontmatterDocument(metadata={}, body=text)

    end_idx: int | None = None
    for i, line in enumerate(lines[1:], start=1):
        if line.rstrip("\r") == DELIMITER:
            end_idx = i
            break

    if end_idx is None:
        return FrontmatterDocument(metadata={}, body=text)

    metadata = parse_metadata("\n".join(lines[1:end_idx]))
    body = "\n".join(lines[end_idx + 1 :])
    if body.startswith("\n"):
        body = body[1:]
    return FrontmatterDocument(metadata=metadata, body=body)


def serialize_document(doc: FrontmatterDocument) -> str:
    """Render *doc* in canonical form.

    A non-empty body is separated from the closing delimiter by one blank
    line; an empty body leaves the closing delimiter as the last line.
    """
    parts = [DELIMITER, "\n", serialize_metadata(doc.metadata), DELIMITER, "\n"]
    if doc.body:
        parts.append("\n")
        parts.append(doc.body)
    return "".join(parts)


def decode_document(content: bytes) -> FrontmatterDocument:
    """Decode UTF-8 bytes into a :class:`FrontmatterDocument`."""
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as exc:
        msg = f"Document is not valid UTF-8: {exc}"
        raise MalformedError(msg) from exc
    return parse_document(text)


def encode_document(doc: FrontmatterDocument) -> bytes:
    """Encode a :class:`FrontmatterDocument` as UTF-8 bytes."""
    return serialize_document(doc).encode("utf-8")
