"""
Views over the cluster resources the rebuilder reads and writes.

Each view keeps the raw object it was parsed from so it can be written back
or copied without losing fields the rebuilder does not know about.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

GIT_SOURCE_TYPE = "Git"
SUCCEEDED_CONDITION = "Succeeded"
USER_IMAGE_ANNOTATION = "client.knative.dev/user-image"

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str) -> timedelta:
    """
    Parse a Go style duration string such as ``10m`` or ``1h30m15s``.

    Raises:
        ValueError: If the string is not a valid duration
    """
    text = value.strip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)

    seconds = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise ValueError(f"invalid duration: {value!r}")
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos == 0:
        raise ValueError(f"invalid duration: {value!r}")
    return timedelta(seconds=sign * seconds)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp, returning None when absent or malformed."""
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _optional_duration(value: Any) -> timedelta | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return parse_duration(value)
    except ValueError:
        return None


def _dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


@dataclass
class BuildSpec:
    """The parts of a build spec the rebuilder cares about."""

    source_type: str | None = None
    git_url: str | None = None
    output_image: str = ""
    timeout: timedelta | None = None
    has_source: bool = False

    @classmethod
    def from_dict(cls, spec: Any) -> BuildSpec:
        spec = _dict(spec)
        source = spec.get("source")
        git = _dict(source).get("git")
        return cls(
            source_type=_dict(source).get("type"),
            git_url=_dict(git).get("url"),
            output_image=str(_dict(spec.get("output")).get("image") or ""),
            timeout=_optional_duration(spec.get("timeout")),
            has_source=isinstance(source, dict),
        )

    def references(self, repo: str) -> bool:
        """True when this spec builds from a git URL containing ``repo``."""
        if not self.has_source or self.source_type != GIT_SOURCE_TYPE:
            return False
        if not self.git_url:
            return False
        return repo in self.git_url


@dataclass
class Build:
    """A Shipwright Build."""

    name: str
    namespace: str
    spec: BuildSpec
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, obj: dict) -> Build:
        metadata = _dict(obj.get("metadata"))
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            spec=BuildSpec.from_dict(obj.get("spec")),
            raw=obj,
        )


@dataclass
class Condition:
    """A status condition."""

    type: str
    status: str
    reason: str = ""
    message: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> Condition:
        return cls(
            type=str(data.get("type", "")),
            status=str(data.get("status", "Unknown")),
            reason=str(data.get("reason") or ""),
            message=str(data.get("message") or ""),
        )


@dataclass
class BuildRun:
    """A Shipwright BuildRun."""

    name: str
    namespace: str
    build_name: str | None = None
    build_spec: BuildSpec | None = None
    timeout: timedelta | None = None
    conditions: list[Condition] = field(default_factory=list)
    completion_time: datetime | None = None
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, obj: dict) -> BuildRun:
        metadata = _dict(obj.get("metadata"))
        spec = _dict(obj.get("spec"))
        status = _dict(obj.get("status"))
        build = _dict(spec.get("build"))
        embedded = build.get("spec")
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            build_name=build.get("name") or None,
            build_spec=BuildSpec.from_dict(embedded) if isinstance(embedded, dict) else None,
            timeout=_optional_duration(spec.get("timeout")),
            conditions=[
                Condition.from_dict(item)
                for item in status.get("conditions") or []
                if isinstance(item, dict)
            ],
            completion_time=parse_timestamp(status.get("completionTime")),
            raw=obj,
        )

    def get_condition(self, condition_type: str = SUCCEEDED_CONDITION) -> Condition | None:
        for condition in self.conditions:
            if condition.type == condition_type:
                return condition
        return None


@dataclass
class Service:
    """A Knative serving Service."""

    name: str
    namespace: str
    annotations: dict[str, str] = field(default_factory=dict)
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, obj: dict) -> Service:
        metadata = _dict(obj.get("metadata"))
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            annotations=dict(_dict(metadata.get("annotations"))),
            raw=obj,
        )

    @property
    def user_image(self) -> str | None:
        return self.annotations.get(USER_IMAGE_ANNOTATION)

    @property
    def template_annotations(self) -> dict[str, str]:
        template = _dict(_dict(self.raw.get("spec")).get("template"))
        return dict(_dict(_dict(template.get("metadata")).get("annotations")))
