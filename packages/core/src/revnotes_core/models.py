"""Review metadata records and their wire format.

Every record is one line of JSON stored in a note. The wire format is
shared with other clones (and other tools), so field names are fixed:

  Request   {timestamp, reviewRef, targetRef, requester, reviewers,
             description, baseCommit, v}
  Comment   {timestamp, author, parent, location{commit, path,
             range{startLine}}, description, resolved, v}
  CIStatus  {timestamp, url, status, agent, v}
  Analysis  {timestamp, url, v}

Decoding is tolerant: unknown fields are kept in ``extra`` and written back
on encode, a missing ``v`` means version 0 and a newer ``v`` is kept but
not interpreted. Encoding is strict: ``timestamp`` is always the first key
so that sorting raw lines sorts records chronologically.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from revnotes_core.errors import ValidationError

logger = logging.getLogger(__name__)

REVIEWS = "reviews"
DISCUSS = "discuss"
CI = "ci"
ANALYSES = "analyses"
NAMESPACES = (REVIEWS, DISCUSS, CI, ANALYSES)

CURRENT_VERSION = 0
TIMESTAMP_WIDTH = 10

CI_SUCCESS = "success"
CI_FAILURE = "failure"
_CI_STATUSES = {CI_SUCCESS, CI_FAILURE}

_MISSING = object()


def format_timestamp(seconds: float | None = None) -> str:
    """Return Unix seconds as a fixed-width, zero-padded decimal string."""
    if seconds is None:
        seconds = time.time()
    return f"{int(seconds):0{TIMESTAMP_WIDTH}d}"


def blob_hash(content: str) -> str:
    """Return the git blob id of ``content`` (what ``git hash-object`` prints)."""
    data = content.encode("utf-8")
    return hashlib.sha1(b"blob %d\0" % len(data) + data).hexdigest()


def _take(data: dict, key: str, expected: type, default: Any = None) -> Any:
    value = data.pop(key, _MISSING)
    if value is _MISSING or value is None:
        return default
    # bool is an int subclass; never accept it where a number is expected.
    if not isinstance(value, expected) or (isinstance(value, bool) and expected is not bool):
        raise ValidationError(f"Field {key!r} has the wrong type")
    return value


def _take_timestamp(data: dict) -> str | None:
    value = _take(data, "timestamp", str) or None
    if value is not None and not value.isdigit():
        raise ValidationError(f"Timestamp {value!r} is not a decimal string")
    return value


def _take_version(data: dict) -> int:
    version = _take(data, "v", int, 0)
    if version < 0:
        raise ValidationError(f"Invalid record version {version}")
    if version > CURRENT_VERSION:
        logger.debug("Record version %d is newer than %d; reading known fields only", version, CURRENT_VERSION)
    return version


def _emit(out: dict, key: str, value: Any) -> None:
    if value is None or value == "" or value == []:
        return
    out[key] = value


def _finish(out: dict, version: int, extra: dict) -> dict:
    if version:
        out["v"] = version
    for key in sorted(extra):
        out.setdefault(key, extra[key])
    return out


@dataclass
class Range:
    start_line: int = 0
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> Range:
        data = dict(data)
        start_line = _take(data, "startLine", int, 0)
        return cls(start_line=start_line, extra=data)

    def to_dict(self) -> dict:
        out: dict = {}
        if self.start_line:
            out["startLine"] = self.start_line
        for key in sorted(self.extra):
            out.setdefault(key, self.extra[key])
        return out


@dataclass
class Location:
    """Where a comment points: a commit, optionally a file and a line."""

    commit: str = ""
    path: str = ""
    range: Range | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> Location:
        data = dict(data)
        commit = _take(data, "commit", str, "")
        path = _take(data, "path", str, "")
        raw_range = _take(data, "range", dict)
        return cls(
            commit=commit,
            path=path,
            range=Range.from_dict(raw_range) if raw_range is not None else None,
            extra=data,
        )

    def to_dict(self) -> dict:
        out: dict = {}
        _emit(out, "commit", self.commit)
        _emit(out, "path", self.path)
        if self.range is not None:
            out["range"] = self.range.to_dict()
        for key in sorted(self.extra):
            out.setdefault(key, self.extra[key])
        return out


@dataclass
class Request:
    """A request to review ``review_ref`` for inclusion in ``target_ref``.

    Stored once, on the first commit of the review (the anchor revision).
    """

    target_ref: str
    review_ref: str = ""
    requester: str = ""
    reviewers: list[str] = field(default_factory=list)
    description: str = ""
    base_commit: str = ""
    timestamp: str | None = None
    version: int = 0
    extra: dict = field(default_factory=dict)
    raw: str | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: dict) -> Request:
        data = dict(data)
        timestamp = _take_timestamp(data)
        target_ref = _take(data, "targetRef", str)
        if not target_ref:
            raise ValidationError("Review request is missing its targetRef")
        reviewers = _take(data, "reviewers", list, [])
        if not all(isinstance(r, str) for r in reviewers):
            raise ValidationError("Field 'reviewers' must be a list of strings")
        return cls(
            timestamp=timestamp,
            review_ref=_take(data, "reviewRef", str, ""),
            target_ref=target_ref,
            requester=_take(data, "requester", str, ""),
            reviewers=list(reviewers),
            description=_take(data, "description", str, ""),
            base_commit=_take(data, "baseCommit", str, ""),
            version=_take_version(data),
            extra=data,
        )

    def to_dict(self) -> dict:
        out: dict = {}
        _emit(out, "timestamp", self.timestamp)
        _emit(out, "reviewRef", self.review_ref)
        out["targetRef"] = self.target_ref
        _emit(out, "requester", self.requester)
        _emit(out, "reviewers", list(self.reviewers))
        _emit(out, "description", self.description)
        _emit(out, "baseCommit", self.base_commit)
        return _finish(out, self.version, self.extra)


@dataclass
class Comment:
    """A review comment. ``parent`` is the hash of the comment it replies to."""

    author: str = ""
    description: str = ""
    parent: str | None = None
    location: Location | None = None
    resolved: bool | None = None
    timestamp: str | None = None
    version: int = 0
    extra: dict = field(default_factory=dict)
    raw: str | None = field(default=None, repr=False, compare=False)

    @property
    def hash(self) -> str:
        """Content hash of the note line this comment is stored as."""
        return blob_hash(self.raw if self.raw is not None else encode(self))

    @classmethod
    def from_dict(cls, data: dict) -> Comment:
        data = dict(data)
        timestamp = _take_timestamp(data)
        raw_location = _take(data, "location", dict)
        return cls(
            timestamp=timestamp,
            author=_take(data, "author", str, ""),
            parent=_take(data, "parent", str) or None,
            location=Location.from_dict(raw_location) if raw_location is not None else None,
            description=_take(data, "description", str, ""),
            resolved=_take(data, "resolved", bool),
            version=_take_version(data),
            extra=data,
        )

    def to_dict(self) -> dict:
        out: dict = {}
        _emit(out, "timestamp", self.timestamp)
        _emit(out, "author", self.author)
        _emit(out, "parent", self.parent)
        if self.location is not None:
            out["location"] = self.location.to_dict()
        _emit(out, "description", self.description)
        if self.resolved is not None:
            out["resolved"] = self.resolved
        return _finish(out, self.version, self.extra)


@dataclass
class CIStatus:
    """Result reported by a build agent. ``status`` None means pending."""

    url: str = ""
    status: str | None = None
    agent: str = ""
    timestamp: str | None = None
    version: int = 0
    extra: dict = field(default_factory=dict)
    raw: str | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: dict) -> CIStatus:
        data = dict(data)
        timestamp = _take_timestamp(data)
        status = _take(data, "status", str) or None
        if status is not None and status not in _CI_STATUSES:
            raise ValidationError(f"Unknown CI status {status!r}")
        return cls(
            timestamp=timestamp,
            url=_take(data, "url", str, ""),
            status=status,
            agent=_take(data, "agent", str, ""),
            version=_take_version(data),
            extra=data,
        )

    def to_dict(self) -> dict:
        out: dict = {}
        _emit(out, "timestamp", self.timestamp)
        _emit(out, "url", self.url)
        _emit(out, "status", self.status)
        _emit(out, "agent", self.agent)
        return _finish(out, self.version, self.extra)


@dataclass
class Analysis:
    """Pointer to static-analysis findings hosted elsewhere."""

    url: str = ""
    timestamp: str | None = None
    version: int = 0
    extra: dict = field(default_factory=dict)
    raw: str | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: dict) -> Analysis:
        data = dict(data)
        timestamp = _take_timestamp(data)
        return cls(
            timestamp=timestamp,
            url=_take(data, "url", str, ""),
            version=_take_version(data),
            extra=data,
        )

    def to_dict(self) -> dict:
        out: dict = {}
        _emit(out, "timestamp", self.timestamp)
        _emit(out, "url", self.url)
        return _finish(out, self.version, self.extra)


Record = TypeVar("Record", Request, Comment, CIStatus, Analysis)


def decode(kind: type[Record], line: str) -> Record:
    """Parse one note line into a record of the given kind.

    Raises ValidationError for anything that is not a well-formed record.
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Note line is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("Note line is not a JSON object")
    record = kind.from_dict(data)
    record.raw = line
    return record


def decode_all(kind: type[Record], lines: Iterable[str]) -> list[Record]:
    """Decode a batch of note lines, skipping (and logging) invalid ones."""
    records = []
    for line in lines:
        try:
            records.append(decode(kind, line))
        except ValidationError as e:
            logger.debug("Skipping invalid %s note: %s", kind.__name__, e)
    return records


def encode(record: Request | Comment | CIStatus | Analysis) -> str:
    """Serialize a record as canonical single-line JSON, timestamp first."""
    return json.dumps(record.to_dict(), separators=(",", ":"), ensure_ascii=False)


def timestamp_key(record: Request | Comment | CIStatus | Analysis) -> str:
    """Sort key for chronological order. Records without a timestamp sort first."""
    return record.timestamp.zfill(TIMESTAMP_WIDTH) if record.timestamp else ""
