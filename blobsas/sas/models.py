"""
Data models for SAS issuance.

Author: blobsas contributors
"""

from collections.abc import MutableMapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple
from urllib.parse import quote

from blobsas.exceptions import InvalidArgumentError, require_positive, require_text

# Canonical timestamp format, second precision with explicit Z suffix
SAS_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

DEFAULT_CLOCK_SKEW = timedelta(minutes=1)


class SasResource(str, Enum):
    """Signed resource (sr) codes."""

    CONTAINER = "c"
    BLOB = "b"


@dataclass(frozen=True)
class ContainerScope:
    """Grant on a whole container."""

    container: str

    def __post_init__(self):
        require_text("container", self.container)

    @property
    def resource(self) -> SasResource:
        return SasResource.CONTAINER

    def canonical_resource(self, account_name: str, service: str = "blob") -> str:
        return f"/{service}/{account_name}/{self.container}"


@dataclass(frozen=True)
class BlobScope:
    """Grant on a single blob."""

    container: str
    blob_path: str

    def __post_init__(self):
        require_text("container", self.container)
        require_text("blob_path", self.blob_path)

    @property
    def resource(self) -> SasResource:
        return SasResource.BLOB

    def canonical_resource(self, account_name: str, service: str = "blob") -> str:
        # Literal path; percent-encoding only applies to the URL
        return f"/{service}/{account_name}/{self.container}/{self.blob_path}"


ResourceScope = (ContainerScope, BlobScope)


def format_sas_time(value: datetime) -> str:
    """Render a timestamp in the canonical SAS format (UTC, whole seconds)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(SAS_TIME_FORMAT)


@dataclass(frozen=True)
class ValidityWindow:
    """UTC start and expiry of a SAS grant."""

    starts_on: datetime
    expires_on: datetime

    def __post_init__(self):
        for name in ("starts_on", "expires_on"):
            value = getattr(self, name)
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            object.__setattr__(self, name, value.astimezone(timezone.utc).replace(microsecond=0))
        if self.expires_on <= self.starts_on:
            raise InvalidArgumentError(
                "expires_on",
                f"Expiry {format_sas_time(self.expires_on)} must be after start {format_sas_time(self.starts_on)}",
            )

    @classmethod
    def from_duration(
        cls,
        now: datetime,
        validity_minutes: int,
        clock_skew: timedelta = DEFAULT_CLOCK_SKEW,
    ) -> "ValidityWindow":
        """Window starting clock_skew before now and lasting validity_minutes from now."""
        require_positive("validity_minutes", validity_minutes)
        return cls(
            starts_on=now - clock_skew,
            expires_on=now + timedelta(minutes=validity_minutes),
        )

    @property
    def start(self) -> str:
        return format_sas_time(self.starts_on)

    @property
    def expiry(self) -> str:
        return format_sas_time(self.expires_on)


@dataclass(frozen=True)
class ResponseHeaderOverrides:
    """Response header overrides carried in a blob service SAS."""

    cache_control: str = ""
    content_disposition: str = ""
    content_encoding: str = ""
    content_language: str = ""
    content_type: str = ""


@dataclass(frozen=True)
class SasDescriptor:
    """Everything that goes into a service SAS string-to-sign."""

    account_name: str
    scope: object
    permissions: str
    window: ValidityWindow
    version: str
    identifier: str = ""
    ip_range: str = ""
    protocol: str = ""
    encryption_scope: str = ""
    overrides: ResponseHeaderOverrides = field(default_factory=ResponseHeaderOverrides)
    service: str = "blob"

    def __post_init__(self):
        require_text("account_name", self.account_name)
        require_text("permissions", self.permissions)
        require_text("version", self.version)
        if not isinstance(self.scope, ResourceScope):
            raise InvalidArgumentError("scope", f"Unsupported resource scope: {self.scope!r}")

    @property
    def resource(self) -> SasResource:
        return self.scope.resource

    @property
    def canonical_resource(self) -> str:
        return self.scope.canonical_resource(self.account_name, self.service)


@dataclass(frozen=True)
class SignedQuery:
    """Ordered SAS query parameters, signature included."""

    params: Tuple[Tuple[str, str], ...]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        for name, value in self.params:
            if name == key:
                return value
        return default

    def as_dict(self) -> Dict[str, str]:
        return dict(self.params)

    @property
    def signature(self) -> str:
        return self.get("sig", "")

    def to_query_string(self) -> str:
        """Render as ``key=value&...`` with percent-encoded values."""
        return "&".join(f"{name}={quote(value, safe='')}" for name, value in self.params)

    def __str__(self) -> str:
        return self.to_query_string()


class SasUrlMap(MutableMapping):
    """Mapping of blob path to SAS URL with case-insensitive keys.

    The first spelling of a key is kept; assigning to a key that differs only
    by case replaces the value. ``skipped`` lists paths a checked batch left
    out because the blob does not exist.
    """

    def __init__(self, data=None):
        self._store: Dict[str, Tuple[str, str]] = {}
        self.skipped: List[str] = []
        if data:
            self.update(data)

    def __setitem__(self, key: str, value: str) -> None:
        folded = key.casefold()
        original = self._store[folded][0] if folded in self._store else key
        self._store[folded] = (original, value)

    def __getitem__(self, key: str) -> str:
        return self._store[key.casefold()][1]

    def __delitem__(self, key: str) -> None:
        del self._store[key.casefold()]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.casefold() in self._store

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.items())!r})"
