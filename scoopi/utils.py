"""scoopi.utils: output path mapping and filesystem helpers for crawled pages."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Sequence, Union
from urllib.parse import unquote, urlsplit

from scoopi.logger import get_logger

logger = get_logger(__name__)

__all__: Sequence[str] = (
    "sanitize_filename",
    "get_output_path",
    "ensure_dir",
    "write_file",
    "file_exists",
    "read_file",
)

_INVALID_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")
_DASHES = re.compile(r"-+")
_HTML_SUFFIX = re.compile(r"\.html?$", re.IGNORECASE)


def sanitize_filename(name: str) -> str:
    """Make *name* safe as a single path segment."""
    name = _INVALID_CHARS.sub("-", name)
    name = _WHITESPACE.sub("-", name)
    name = _DASHES.sub("-", name)
    return name.strip("-")


def _path_segments(path: str) -> List[str]:
    segments = []
    for raw in path.split("/"):
        if raw in ("", ".", ".."):
            continue
        segment = sanitize_filename(unquote(raw))
        if segment and segment not in (".", ".."):
            segments.append(segment)
    return segments


def get_output_path(output_root: Union[str, Path], url: str) -> Path:
    """
    Map *url* to ``output_root/<host>/<dirs...>/<name>.md``.

    The mapping depends only on its arguments, so re-crawling a URL
    overwrites the same file. Unparseable URLs land in ``output_root/unknown.md``.
    """
    root = Path(output_root)
    try:
        host = urlsplit(url).hostname
    except ValueError:
        host = None
    domain = sanitize_filename(host) if host else ""
    if not domain:
        logger.debug("Cannot map %r to a path, using unknown.md", url)
        return root / "unknown.md"

    segments = _path_segments(urlsplit(url).path)
    filename = segments.pop() if segments else "index"
    filename = sanitize_filename(_HTML_SUFFIX.sub("", filename)) or "index"
    return root.joinpath(domain, *segments, f"{filename}.md")


def ensure_dir(path: Union[str, Path]) -> Path:
    """Create *path* and its parents; an existing directory is fine."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def write_file(path: Union[str, Path], content: str) -> Path:
    """Write UTF-8 *content* to *path*, creating parent directories as needed."""
    p = Path(path)
    ensure_dir(p.parent)
    p.write_text(content, encoding="utf-8")
    logger.debug("Wrote %d characters to %s", len(content), p)
    return p


def file_exists(path: Union[str, Path]) -> bool:
    return Path(path).is_file()


def read_file(path: Union[str, Path]) -> Optional[str]:
    """Return the text of *path*, or None when it cannot be read."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError:
        return None
