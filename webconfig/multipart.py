"""Splitting of multipart/mixed configuration responses into sub-documents."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from webconfig.notify import ErrorCode

logger = logging.getLogger(__name__)

SUBDOC_TAG_COUNT = 4
_ULONG_MAX = 2**64 - 1
_UINT32_MASK = 0xFFFFFFFF
_WHITESPACE = " \t\n\r\f\v"


class MultipartError(ValueError):
    """Raised when a multipart response or one of its parts is unusable."""

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        namespace: Optional[str] = None,
        rejected: Iterable[str] = (),
    ) -> None:
        super().__init__(message)
        self.code = code
        self.namespace = namespace
        self.rejected = list(rejected)


@dataclass
class SubDoc:
    """One sub-document carried by a multipart response."""

    etag: int
    name_space: str
    data: bytes
    is_supplementary_sync: bool = False

    @property
    def data_size(self) -> int:
        return len(self.data)


def _strtoul(text: str) -> int:
    """Parse an unsigned number with automatic base, truncated to 32 bits."""
    s = text.lstrip(_WHITESPACE)
    negative = False
    if s[:1] in ("+", "-"):
        negative = s[0] == "-"
        s = s[1:]
    if s[:2].lower() == "0x" and s[2:3] and s[2] in "0123456789abcdefABCDEF":
        base, s = 16, s[2:]
    elif s.startswith("0"):
        base = 8
    else:
        base = 10
    value = 0
    for char in s:
        try:
            digit = int(char, 36)
        except ValueError:
            break
        if digit >= base:
            break
        value = value * base + digit
    if value > _ULONG_MAX:
        value = _ULONG_MAX
    elif negative:
        value = (-value) % (_ULONG_MAX + 1)
    return value & _UINT32_MASK


def boundary_from_content_type(content_type: str) -> str:
    """Return the boundary named in a multipart Content-Type value.

    Raises MultipartError when no boundary can be found.
    """
    fields = [field for field in content_type.split(";") if field]
    if len(fields) >= 2:
        pieces = [piece for piece in fields[1].split("=") if piece]
        if len(pieces) >= 2:
            return pieces[1]
    logger.error("Multipart Boundary is NULL")
    raise MultipartError("multipart boundary is missing", ErrorCode.MULTIPART_BOUNDARY_NULL)


def _as_bytes(value: Union[str, bytes]) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def split_parts(body: bytes, boundary: Union[str, bytes]) -> List[bytes]:
    """Return the contents of each part between boundary lines.

    Each part starts after its '--boundary' line and ends before the CRLF
    that precedes the next boundary. Scanning stops at the closing
    '--boundary--'; a part with no following boundary is dropped.
    """
    body = bytes(body)
    marker = b"--" + _as_bytes(boundary)
    markers: List[Tuple[int, bool]] = []
    pos = body.find(marker)
    while pos != -1:
        after = body[pos + len(marker):pos + len(marker) + 2]
        if after == b"--":
            markers.append((pos, True))
            break
        if after == b"\r\n":
            markers.append((pos, False))
        pos = body.find(marker, pos + 1)

    parts = []
    for (start, is_last), (end, _) in zip(markers, markers[1:]):
        if is_last:
            break
        content_start = start + len(marker) + 2
        parts.append(body[content_start:max(content_start, end - 2)])
    logger.info("Size of the docs is :%d", len(parts))
    return parts


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", "replace")


def _header_lines(part: bytes) -> Tuple[List[bytes], Optional[bytes]]:
    lines = []
    pos = 0
    for _ in range(SUBDOC_TAG_COUNT):
        newline = part.find(b"\n", pos)
        if newline == -1:
            return lines, None
        end = newline
        if part[newline - 1:newline] != b"\r":
            following = part.find(b"\n", newline + 1)
            end = following if following != -1 else len(part)
        lines.append(part[pos:max(pos, end - 1)])
        pos = newline + 1
    return lines, part[pos:]


def parse_subdoc(part: bytes, is_supplementary: bool = False) -> SubDoc:
    """Parse the header lines and msgpack body of one part.

    Raises MultipartError (with the namespace, when one was given) if the
    etag, namespace or data is missing.
    """
    name_space: Optional[str] = None
    etag = 0
    data: Optional[bytes] = None

    lines, tail = _header_lines(bytes(part))
    if tail is not None:
        lines.append(tail)

    for line in lines:
        lowered = line.lower()
        if line.startswith(b"Content-type"):
            content_type = line[len(b"Content-type: "):]
            if not content_type.startswith(b"application/msgpack"):
                logger.error("Content-type not msgpack: %s", _decode(content_type))
        elif lowered.startswith(b"namespace"):
            name_space = _decode(line[len(b"Namespace: "):])
        elif lowered.startswith(b"etag"):
            etag = _strtoul(_decode(line[len(b"Etag: "):]))
            logger.debug("The Etag version is %d", etag)
        elif b"parameters" in line.split(b"\0", 1)[0]:
            data = line

    if etag and name_space is not None and data:
        return SubDoc(etag, name_space, data, bool(is_supplementary))
    raise MultipartError(
        "sub-document is missing its etag, namespace or data",
        ErrorCode.MULTIPART_CACHE_NULL,
        namespace=name_space,
    )


def parse_multipart(
    body: bytes, content_type: str, is_supplementary: bool = False
) -> Tuple[List[SubDoc], List[str]]:
    """Split a multipart response into sub-documents.

    Returns the parsed documents and the namespaces of parts that were
    rejected. Raises MultipartError when there is no boundary or no
    document could be parsed.
    """
    boundary = boundary_from_content_type(content_type)
    docs: List[SubDoc] = []
    rejected: List[str] = []
    for part in split_parts(body, boundary):
        try:
            docs.append(parse_subdoc(part, is_supplementary))
        except MultipartError as exc:
            if exc.namespace is not None:
                rejected.append(exc.namespace)
    if not docs:
        logger.error("Multipart list is empty")
        raise MultipartError("multipart list is empty", rejected=rejected)
    return docs, rejected


class MultipartCache:
    """Thread-safe ordered list of sub-documents awaiting application."""

    def __init__(self) -> None:
        self._docs: List[SubDoc] = []
        self._lock = threading.Lock()

    def add(self, doc: SubDoc) -> None:
        """Append a document to the end of the cache."""
        with self._lock:
            self._docs.append(doc)

    def delete(self, name: str) -> SubDoc:
        """Remove and return the first document with this namespace.

        Raises KeyError when there is none.
        """
        if name is None:
            raise ValueError("document name is missing")
        with self._lock:
            for index, doc in enumerate(self._docs):
                if doc.name_space == name:
                    return self._docs.pop(index)
        logger.error("Could not find the entry to delete from mp list")
        raise KeyError(name)

    def delete_sync_kind(self, is_supplementary: bool) -> int:
        """Remove every document from the given kind of sync; return how many."""
        with self._lock:
            kept = [d for d in self._docs if d.is_supplementary_sync != bool(is_supplementary)]
            removed = len(self._docs) - len(kept)
            self._docs = kept
        return removed

    def clear(self) -> None:
        """Remove every document."""
        with self._lock:
            self._docs.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._docs)

    def __iter__(self) -> Iterator[SubDoc]:
        with self._lock:
            return iter(list(self._docs))