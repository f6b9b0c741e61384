"""SAS permission vocabularies for container and blob scoped grants.

Permissions are always rendered in the order the storage service expects,
regardless of the order in which they were supplied. The service re-derives
the same string when it verifies the signature, so an out-of-order ``sp``
value fails authentication.
"""

from enum import Enum
from typing import ClassVar, FrozenSet, Iterable, Iterator, Tuple, Union

from blobsas.exceptions import InvalidArgumentError


class SasPermission(str, Enum):
    """SAS permission flags."""

    READ = "r"
    ADD = "a"
    CREATE = "c"
    WRITE = "w"
    DELETE = "d"
    DELETE_PREVIOUS_VERSION = "x"
    PERMANENT_DELETE = "y"
    LIST = "l"
    TAG = "t"
    FILTER_BY_TAGS = "f"
    MOVE = "m"
    EXECUTE = "e"
    SET_IMMUTABILITY_POLICY = "i"


PermissionLike = Union[SasPermission, str]


class PermissionSet:
    """Immutable set of SAS permissions over a fixed vocabulary.

    Subclasses define ``ORDER``, the vocabulary in canonical rendering order.

    Example:
        >>> str(ContainerSasPermissions(list=True, read=True))
        'rl'
        >>> str(BlobSasPermissions.from_string("wr"))
        'rw'
    """

    ORDER: ClassVar[Tuple[SasPermission, ...]] = ()

    def __init__(self, *permissions: PermissionLike, **flags: bool):
        """Initialize permission set.

        Args:
            *permissions: Permission members, letters or flag names
            **flags: Flag names set to True or False (e.g. read=True)

        Raises:
            InvalidArgumentError: If a permission is not part of the vocabulary
        """
        selected = {self._coerce(permission) for permission in permissions}
        for name, enabled in flags.items():
            if enabled:
                selected.add(self._coerce(name))
        self._permissions: FrozenSet[SasPermission] = frozenset(selected)

    @classmethod
    def _coerce(cls, value: PermissionLike) -> SasPermission:
        permission = None
        if isinstance(value, SasPermission):
            permission = value
        elif isinstance(value, str):
            text = value.strip()
            if len(text) == 1:
                try:
                    permission = SasPermission(text.lower())
                except ValueError:
                    permission = None
            else:
                permission = SasPermission.__members__.get(text.upper())

        if permission is None or permission not in cls.ORDER:
            allowed = "".join(p.value for p in cls.ORDER)
            raise InvalidArgumentError(
                "permissions",
                f"Permission {value!r} is not valid for {cls.__name__} (allowed: {allowed})",
            )
        return permission

    @classmethod
    def from_string(cls, letters: str) -> "PermissionSet":
        """Parse a permission letter string in any order, e.g. "lr"."""
        if letters is None:
            raise InvalidArgumentError("permissions", "Permission string cannot be None")
        return cls(*[letter for letter in letters if not letter.isspace()])

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "PermissionSet":
        """Build from flag names such as ["read", "list"]."""
        return cls(*names)

    @classmethod
    def coerce(cls, value: Union["PermissionSet", str, Iterable[PermissionLike]]) -> "PermissionSet":
        """Convert another permission set, a letter string or an iterable into this class."""
        if isinstance(value, cls):
            return value
        if isinstance(value, PermissionSet):
            return cls(*value)
        if isinstance(value, str):
            return cls.from_string(value)
        return cls(*value)

    def __iter__(self) -> Iterator[SasPermission]:
        return (p for p in self.ORDER if p in self._permissions)

    def __contains__(self, item: object) -> bool:
        try:
            return self._coerce(item) in self._permissions
        except InvalidArgumentError:
            return False

    def __len__(self) -> int:
        return len(self._permissions)

    def __bool__(self) -> bool:
        return bool(self._permissions)

    def __or__(self, other):
        if not isinstance(other, (PermissionSet, SasPermission, str)):
            return NotImplemented
        extra = other if isinstance(other, PermissionSet) else [other]
        return type(self)(*self._permissions, *extra)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PermissionSet):
            return type(self) is type(other) and self._permissions == other._permissions
        return NotImplemented

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._permissions))

    def __str__(self) -> str:
        return "".join(p.value for p in self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"


class ContainerSasPermissions(PermissionSet):
    """Permissions for a container scoped SAS."""

    ORDER = (
        SasPermission.READ,
        SasPermission.ADD,
        SasPermission.CREATE,
        SasPermission.WRITE,
        SasPermission.DELETE,
        SasPermission.DELETE_PREVIOUS_VERSION,
        SasPermission.PERMANENT_DELETE,
        SasPermission.LIST,
        SasPermission.TAG,
        SasPermission.FILTER_BY_TAGS,
        SasPermission.MOVE,
        SasPermission.EXECUTE,
        SasPermission.SET_IMMUTABILITY_POLICY,
    )


class BlobSasPermissions(PermissionSet):
    """Permissions for a blob scoped SAS."""

    ORDER = (
        SasPermission.READ,
        SasPermission.ADD,
        SasPermission.CREATE,
        SasPermission.WRITE,
        SasPermission.DELETE,
        SasPermission.DELETE_PREVIOUS_VERSION,
        SasPermission.PERMANENT_DELETE,
        SasPermission.TAG,
        SasPermission.MOVE,
        SasPermission.EXECUTE,
        SasPermission.SET_IMMUTABILITY_POLICY,
    )
