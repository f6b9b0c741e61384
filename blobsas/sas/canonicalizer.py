"""String-to-sign construction for blob service SAS tokens.

The storage service recomputes the string-to-sign from the query parameters
and compares signatures, so the field list, field order and formatting must
match the service exactly for the requested version. Every slot is present
even when empty.

Field layouts per version:

    2015-04-05 .. 2018-03-28
        sp, st, se, canonicalizedresource, si, sip, spr, sv,
        rscc, rscd, rsce, rscl, rsct

    2018-11-09 .. 2020-10-02
        sp, st, se, canonicalizedresource, si, sip, spr, sv,
        sr, signedSnapshotTime, rscc, rscd, rsce, rscl, rsct

    2020-12-06 and later
        sp, st, se, canonicalizedresource, si, sip, spr, sv,
        sr, signedSnapshotTime, ses, rscc, rscd, rsce, rscl, rsct

Reference: https://learn.microsoft.com/en-us/rest/api/storageservices/create-service-sas
"""

import bisect
import logging
import re
from typing import Callable, Dict, Iterable, Optional, Tuple

from blobsas.exceptions import InvalidArgumentError
from blobsas.sas.models import SasDescriptor

logger = logging.getLogger(__name__)

API_VERSION_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")

FieldGetter = Callable[[SasDescriptor], str]

# Field name -> value extractor
FIELDS: Dict[str, FieldGetter] = {
    "sp": lambda d: d.permissions,
    "st": lambda d: d.window.start,
    "se": lambda d: d.window.expiry,
    "canonicalizedresource": lambda d: d.canonical_resource,
    "si": lambda d: d.identifier,
    "sip": lambda d: d.ip_range,
    "spr": lambda d: d.protocol,
    "sv": lambda d: d.version,
    "sr": lambda d: d.resource.value,
    "snapshot": lambda d: "",
    "ses": lambda d: d.encryption_scope,
    "rscc": lambda d: d.overrides.cache_control,
    "rscd": lambda d: d.overrides.content_disposition,
    "rsce": lambda d: d.overrides.content_encoding,
    "rscl": lambda d: d.overrides.content_language,
    "rsct": lambda d: d.overrides.content_type,
}

_HEAD = ("sp", "st", "se", "canonicalizedresource", "si", "sip", "spr", "sv")
_OVERRIDES = ("rscc", "rscd", "rsce", "rscl", "rsct")

# Minimum version -> field layout, sorted by version
DEFAULT_TABLES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("2015-04-05", _HEAD + _OVERRIDES),
    ("2018-11-09", _HEAD + ("sr", "snapshot") + _OVERRIDES),
    ("2020-12-06", _HEAD + ("sr", "snapshot", "ses") + _OVERRIDES),
)


class SasCanonicalizer:
    """Builds service SAS strings-to-sign from versioned field tables.

    Example:
        canonicalizer = SasCanonicalizer()
        string_to_sign = canonicalizer.build_string_to_sign(descriptor)
    """

    def __init__(self, tables: Optional[Iterable[Tuple[str, Iterable[str]]]] = None):
        """Initialize canonicalizer.

        Args:
            tables: Pairs of (minimum version, field layout). Defaults to the
                    layouts documented in this module.

        Raises:
            InvalidArgumentError: If a layout names an unknown field
        """
        entries = []
        for min_version, layout in (tables if tables is not None else DEFAULT_TABLES):
            layout = tuple(layout)
            unknown = [name for name in layout if name not in FIELDS]
            if unknown:
                raise InvalidArgumentError(
                    "tables", f"Unknown string-to-sign fields for {min_version}: {', '.join(unknown)}"
                )
            entries.append((min_version, layout))
        if not entries:
            raise InvalidArgumentError("tables", "At least one canonicalization table is required")
        entries.sort()
        self._versions = [min_version for min_version, _ in entries]
        self._layouts = [layout for _, layout in entries]

    @property
    def oldest_supported_version(self) -> str:
        return self._versions[0]

    def layout_for(self, version: str) -> Tuple[str, ...]:
        """Return the field layout for an API version.

        The newest table whose minimum version is not greater than ``version``
        applies. Versions are ISO dates and compare as strings.

        Raises:
            InvalidArgumentError: If version is not a YYYY-MM-DD date or
                                  predates the oldest table
        """
        if not isinstance(version, str) or not API_VERSION_PATTERN.fullmatch(version):
            raise InvalidArgumentError("version", f"API version must be in format YYYY-MM-DD, got {version!r}")
        index = bisect.bisect_right(self._versions, version) - 1
        if index < 0:
            raise InvalidArgumentError(
                "version",
                f"API version {version} is not supported; oldest supported is {self._versions[0]}",
            )
        return self._layouts[index]

    def build_string_to_sign(self, descriptor: SasDescriptor) -> str:
        """Build the newline-joined string-to-sign (no trailing newline)."""
        layout = self.layout_for(descriptor.version)
        parts = [FIELDS[name](descriptor) or "" for name in layout]
        logger.debug(
            f"Built string-to-sign for {descriptor.canonical_resource} "
            f"(version {descriptor.version}, {len(parts)} fields)"
        )
        return "\n".join(parts)


_default_canonicalizer = SasCanonicalizer()


def build_string_to_sign(descriptor: SasDescriptor) -> str:
    """Build the string-to-sign with the default version tables."""
    return _default_canonicalizer.build_string_to_sign(descriptor)
