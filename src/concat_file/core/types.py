"""Core data types that flow through the assembly pipeline.

This module defines the declarations (targets and fragments), the companion
file resource descriptor, and the immutable command states that each pipeline
stage produces. Declarations validate themselves on construction so a
malformed target or fragment is never built.
"""

from __future__ import annotations

import dataclasses
from pathlib import PurePosixPath, PureWindowsPath
from types import MappingProxyType
import typing

from concat_file.core.exceptions import ValidationError

if typing.TYPE_CHECKING:
    from concat_file.config import FrozenConfig

T = typing.TypeVar("T")

# Separator joining a fragment's order value and name into its sort key.
KEY_SEPARATOR: typing.Final[str] = "___"

# Attributes copied verbatim onto the companion file resource when set.
PASSTHROUGH_ATTRIBUTES: typing.Final[tuple[str, ...]] = (
    "owner",
    "group",
    "mode",
    "replace",
    "backup",
    "selinux_ignore_defaults",
    "selrange",
    "selrole",
    "seltype",
    "seluser",
    "validate_cmd",
    "show_diff",
)

# Host-level attributes that apply to any resource. Relationship and tag
# metaparams stay on the target and are never copied to the companion file.
FORWARDED_METAPARAMS: typing.Final[tuple[str, ...]] = (
    "alias",
    "audit",
    "consume",
    "export",
    "loglevel",
    "noop",
    "schedule",
    "stage",
)
EXCLUDED_METAPARAMS: typing.Final[tuple[str, ...]] = (
    "before",
    "notify",
    "require",
    "subscribe",
    "tag",
)

OrderMode = typing.Literal["numeric", "alpha"]
EnsureState = typing.Literal["present", "absent"]
FileEnsure = typing.Literal["file", "absent"]


# --- Minimal guard helpers ---


def _freeze_mapping(
    m: dict[str, T] | typing.Mapping[str, T] | None,
) -> typing.Mapping[str, T]:
    """Return an immutable mapping view (empty when None)."""
    if isinstance(m, MappingProxyType):
        return m
    return MappingProxyType(dict(m or {}))


def _is_tuple_of(value: object, typ: type | tuple[type, ...]) -> bool:
    return isinstance(value, tuple) and all(isinstance(v, typ) for v in value)


def _require(
    *,
    condition: bool,
    message: str,
    field_name: str | None = None,
) -> None:
    """Raise ValidationError with optional field context when not `condition`."""
    if not condition:
        if field_name:
            raise ValidationError(f"{field_name}: {message}")
        raise ValidationError(message)


def _optional_str(value: object, field_name: str) -> None:
    _require(
        condition=value is None or isinstance(value, str),
        message=f"must be a String, got {type(value).__name__}",
        field_name=field_name,
    )


def _optional_bool(value: object, field_name: str) -> None:
    _require(
        condition=value is None or isinstance(value, bool),
        message=f"must be a Boolean, got {type(value).__name__}",
        field_name=field_name,
    )


def is_absolute_path(value: str) -> bool:
    """Return True if `value` is fully qualified for POSIX or Windows."""
    if PurePosixPath(value).is_absolute():
        return True
    return PureWindowsPath(value).is_absolute()


# --- Result type ---

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success(typing.Generic[TSuccess]):
    """A successful stage result."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure(typing.Generic[TFailure]):
    """A failed stage result, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]


# --- Declarations ---


@dataclasses.dataclass(frozen=True, slots=True)
class Target:
    """The logical output file that fragments contribute to.

    `path` is the namevar; `title` defaults to it. Attributes listed in
    `PASSTHROUGH_ATTRIBUTES` are not interpreted here, only type-checked and
    handed to the companion file resource.
    """

    path: str
    title: str | None = None
    tag: str | None = None
    ensure: EnsureState = "present"
    order: OrderMode = "numeric"
    ensure_newline: bool = False
    owner: str | int | None = None
    group: str | int | None = None
    mode: str | int | None = None
    backup: bool | str | None = None
    replace: bool = True
    validate_cmd: str | None = None
    selinux_ignore_defaults: bool | None = None
    selrange: str | None = None
    selrole: str | None = None
    seltype: str | None = None
    seluser: str | None = None
    show_diff: bool | None = None
    # Excluded from the hash: a mapping proxy is unhashable
    metaparams: typing.Mapping[str, typing.Any] = dataclasses.field(
        default_factory=dict, hash=False
    )

    def __post_init__(self) -> None:
        """Validate the declaration; a malformed target is never built."""
        _require(
            condition=isinstance(self.path, str) and self.path != "",
            message="must be a non-empty String",
            field_name="path",
        )
        _require(
            condition=is_absolute_path(self.path),
            message=f"File paths must be fully qualified, not '{self.path}'",
            field_name="path",
        )
        if self.title is None:
            object.__setattr__(self, "title", self.path)
        _optional_str(self.title, "title")
        _optional_str(self.tag, "tag")
        _require(
            condition=self.ensure in ("present", "absent"),
            message=f"must be one of ['present','absent'], got {self.ensure!r}",
            field_name="ensure",
        )
        _require(
            condition=self.order in ("numeric", "alpha"),
            message=f"must be one of ['numeric','alpha'], got {self.order!r}",
            field_name="order",
        )
        for name in ("ensure_newline", "replace"):
            _require(
                condition=isinstance(getattr(self, name), bool),
                message="must be a Boolean",
                field_name=name,
            )
        for name in ("owner", "group", "mode"):
            value = getattr(self, name)
            _require(
                condition=value is None
                or (isinstance(value, str | int) and not isinstance(value, bool)),
                message="must be a String or Integer",
                field_name=name,
            )
        _require(
            condition=self.backup is None or isinstance(self.backup, bool | str),
            message="Backup must be a Boolean or String",
            field_name="backup",
        )
        for name in ("validate_cmd", "selrange", "selrole", "seltype", "seluser"):
            _optional_str(getattr(self, name), name)
        for name in ("selinux_ignore_defaults", "show_diff"):
            _optional_bool(getattr(self, name), name)

        unknown = set(self.metaparams) - set(FORWARDED_METAPARAMS) - set(
            EXCLUDED_METAPARAMS
        )
        _require(
            condition=not unknown,
            message=f"unknown metaparams {sorted(unknown)}",
            field_name="metaparams",
        )
        object.__setattr__(self, "metaparams", _freeze_mapping(self.metaparams))

    @property
    def ref(self) -> str:
        """Identity of the target in a resource graph."""
        return f"Concat_file[{self.title}]"

    @property
    def file_ref(self) -> str:
        """Identity of the companion file resource."""
        return f"File[{self.path}]"

    def exists(self) -> bool:
        """Return True if the target should be present."""
        return self.ensure == "present"

    def autorequire(self) -> tuple[str, ...]:
        """References the target depends on implicitly."""
        return (self.file_ref,)

    def passthrough(self) -> dict[str, typing.Any]:
        """Return the set passthrough attributes, in declaration order."""
        attrs = {"path": self.path}
        for name in PASSTHROUGH_ATTRIBUTES:
            value = getattr(self, name)
            if value is not None:
                attrs[name] = value
        return attrs

    def forwarded_metaparams(self) -> dict[str, typing.Any]:
        """Return metaparams that are copied onto the companion resource."""
        return {
            name: self.metaparams[name]
            for name in FORWARDED_METAPARAMS
            if self.metaparams.get(name)
        }


@dataclasses.dataclass(frozen=True, slots=True)
class Fragment:
    """A declared piece of content for one target.

    The fragment references its target by path or title (`target`) or by a
    shared `tag`. Literal `content` always wins over `source`, which is an
    ordered list of alternative locators tried until one exists.
    """

    name: str
    target: str | None = None
    tag: str | None = None
    order: str | None = None
    content: str | None = None
    source: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        """Normalize order/source and validate the declaration."""
        _require(
            condition=isinstance(self.name, str) and self.name != "",
            message="must be a non-empty String",
            field_name="name",
        )
        _optional_str(self.target, "target")
        _optional_str(self.tag, "tag")
        _require(
            condition=bool(self.target) or bool(self.tag),
            message="No 'target' or 'tag' set",
            field_name=self.name,
        )

        if isinstance(self.order, int) and not isinstance(self.order, bool):
            object.__setattr__(self, "order", str(self.order))
        _optional_str(self.order, "order")
        if self.order is not None:
            _require(
                condition=not any(c in self.order for c in "/:\n"),
                message="Order cannot contain '/', ':', or '\\n'.",
                field_name="order",
            )

        _optional_str(self.content, "content")
        if isinstance(self.source, str):
            object.__setattr__(self, "source", (self.source,))
        elif isinstance(self.source, list):
            object.__setattr__(self, "source", tuple(self.source))
        _require(
            condition=self.source is None or _is_tuple_of(self.source, str),
            message="must be a String or a list of Strings",
            field_name="source",
        )
        _require(
            condition=self.content is not None or bool(self.source),
            message="Must specify either source or content",
            field_name=self.name,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class ResolvedFragment:
    """A fragment whose content has been produced."""

    order: str
    name: str
    content: str


@dataclasses.dataclass(slots=True)
class FileResource:
    """Companion file resource registered in phase 1 and filled in phase 2.

    Only `content` is ever mutated after construction.
    """

    path: str
    ensure: FileEnsure
    attributes: typing.Mapping[str, typing.Any] = dataclasses.field(
        default_factory=dict
    )
    metaparams: typing.Mapping[str, typing.Any] = dataclasses.field(
        default_factory=dict
    )
    content: str | None = None

    @property
    def ref(self) -> str:
        """Identity of the resource in a resource graph."""
        return f"File[{self.path}]"

    def to_dict(self) -> dict[str, typing.Any]:
        """Flatten the descriptor for serialization."""
        data: dict[str, typing.Any] = {"ensure": self.ensure}
        data.update(self.attributes)
        data.update(self.metaparams)
        if self.content is not None:
            data["content"] = self.content
        return data


# --- Typed Command States ---


@dataclasses.dataclass(frozen=True, slots=True)
class InitialCommand:
    """A target plus the full fragment population known to the caller."""

    target: Target
    fragments: tuple[Fragment, ...]
    config: FrozenConfig

    def __post_init__(self) -> None:
        """Validate InitialCommand invariants."""
        _require(
            condition=isinstance(self.target, Target),
            message="must be a Target",
            field_name="target",
        )
        _require(
            condition=_is_tuple_of(self.fragments, Fragment),
            message="must be a tuple[Fragment, ...]",
            field_name="fragments",
        )


@dataclasses.dataclass(frozen=True, slots=True)
class MatchedCommand:
    """Fragments that belong to the target."""

    initial: InitialCommand
    fragments: tuple[Fragment, ...]

    @property
    def target(self) -> Target:
        return self.initial.target


@dataclasses.dataclass(frozen=True, slots=True)
class ResolvedCommand:
    """Matched fragments with their content resolved."""

    matched: MatchedCommand
    resolved: tuple[ResolvedFragment, ...]

    @property
    def target(self) -> Target:
        return self.matched.target


@dataclasses.dataclass(frozen=True, slots=True)
class SortedCommand:
    """Resolved fragments in final output order."""

    resolved: ResolvedCommand
    ordered: tuple[ResolvedFragment, ...]

    @property
    def target(self) -> Target:
        return self.resolved.target


@dataclasses.dataclass(frozen=True, slots=True)
class AssembledCommand:
    """Terminal state: the assembled content for a target."""

    sorted: SortedCommand
    content: str

    @property
    def target(self) -> Target:
        return self.sorted.target
