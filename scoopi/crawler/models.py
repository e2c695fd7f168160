"""
Data models for the scoopi crawler.
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Deque, Dict, List, Set, Tuple


@dataclass(frozen=True, slots=True)
class Link:
    """An anchor found on a page: target and visible text."""

    href: str
    text: str = ""


@dataclass(slots=True)
class PageResult:
    """What a renderer hands back for one page; consumed by the converter and discarded."""

    content: str
    links: Tuple[Link, ...] = ()
    title: str = ""


@dataclass(frozen=True, slots=True)
class FrontierEntry:
    """A queued (url, depth) pair."""

    url: str
    depth: int


class CrawlState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"


@dataclass(slots=True)
class CrawlRunState:
    """Mutable traversal state owned by a single ``Crawler.crawl()`` call."""

    visited: Set[str] = field(default_factory=set)
    pending: Set[str] = field(default_factory=set)
    queue: Deque[FrontierEntry] = field(default_factory=deque)
    failed: Dict[str, str] = field(default_factory=dict)
    written: List[Path] = field(default_factory=list)
    interrupted: bool = False

    def is_known(self, url: str) -> bool:
        return url in self.visited or url in self.pending or url in self.failed

    def enqueue(self, entry: FrontierEntry) -> None:
        self.pending.add(entry.url)
        self.queue.append(entry)

    def dequeue(self) -> FrontierEntry:
        entry = self.queue.popleft()
        self.pending.discard(entry.url)
        return entry


@dataclass(frozen=True, slots=True)
class CrawlReport:
    """Outcome of a crawl run."""

    state: CrawlState
    start_url: str
    visited: int
    written: Tuple[Path, ...]
    failed: Dict[str, str]
    duration: float

    @property
    def interrupted(self) -> bool:
        return self.state is CrawlState.INTERRUPTED
