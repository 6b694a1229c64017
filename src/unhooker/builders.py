"""Convenience builders that turn loosely shaped input into committed queues.

Two input shapes are accepted:

- a simple map ``{hook_name: target}``
- a list of structured mappings with ``hook`` (alias ``tag``), the payload
  field(s), optional ``priority`` and optional ``condition``

Callbacks and conditions may be given as dotted import paths. Malformed
entries are reported to the error callback and skipped; the batch keeps
going. Every builder commits the queue before returning it, and returns
None if the queue itself could not be built.
"""

from __future__ import annotations

import importlib
import logging
from abc import abstractmethod
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool, ValidationError, field_validator

from unhooker.exceptions import InvalidEntryError
from unhooker.queue.entry import CallbackTarget, ClassMethodTarget, ConstantValue, QueueEntry
from unhooker.queue.hook_queue import HookQueue, method_queue, removal_queue, value_queue

if TYPE_CHECKING:
    from unhooker.config import UnhookerConfig
    from unhooker.queue.conditions import Condition
    from unhooker.registry import HostRegistry

logger = logging.getLogger(__name__)

EntryKind = Literal["remove_callbacks", "set_values", "remove_methods"]
ErrorCallback = Callable[[Exception], Any]


def resolve_import_path(path: str) -> Any:
    """Import an object from a dotted path.

    The longest importable module prefix is used, and the rest is walked
    as attributes, so ``pkg.module.Class.method`` works.

    Args:
        path: Dotted path such as ``myapp.hooks.on_init``

    Returns:
        The resolved object

    Raises:
        ValueError: If no prefix imports or an attribute is missing
    """
    parts = path.split(".")
    for split in range(len(parts) - 1, 0, -1):
        module_path = ".".join(parts[:split])
        try:
            obj: Any = importlib.import_module(module_path)
        except ImportError:
            continue
        try:
            for attr in parts[split:]:
                obj = getattr(obj, attr)
        except AttributeError as e:
            raise ValueError(f"Cannot resolve '{path}': {e}") from e
        return obj
    raise ValueError(f"Cannot import '{path}'")


def _resolve_callable(value: Any) -> Any:
    if isinstance(value, str):
        return resolve_import_path(value)
    return value


# Input variants


@dataclass(frozen=True)
class SimpleMapEntry:
    """One ``hook_name: target`` pair from a simple map."""

    hook: str
    target: Any


@dataclass(frozen=True)
class StructuredEntry:
    """One mapping from a list of structured entries."""

    fields: Mapping[str, Any]


def iter_raw_entries(raw: Mapping[str, Any] | list[Any]) -> Iterator[SimpleMapEntry | StructuredEntry | Any]:
    """Split raw builder input into input variants.

    Items of a list that are not mappings are yielded unchanged so the
    caller can report them.
    """
    if isinstance(raw, Mapping):
        for hook, target in raw.items():
            yield SimpleMapEntry(hook=hook, target=target)
        return

    for item in raw:
        if isinstance(item, Mapping):
            yield StructuredEntry(fields=item)
        else:
            yield item


# Validated entry models


class _EntryModel(BaseModel):
    """Fields shared by every structured entry."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    hook: str = Field(min_length=1, validation_alias=AliasChoices("hook", "tag"))
    priority: int | None = None
    condition: Callable[[], bool] | None = None

    @field_validator("condition", mode="before")
    @classmethod
    def _resolve_condition(cls, value: Any) -> Any:
        return _resolve_callable(value)

    @classmethod
    @abstractmethod
    def from_simple(cls, simple: SimpleMapEntry) -> _EntryModel: ...

    @abstractmethod
    def to_entry(self) -> QueueEntry: ...


class StructuredRemoval(_EntryModel):
    """Removal of a specific callback."""

    callback: Callable[..., Any] = Field(validation_alias=AliasChoices("callback", "function"))

    @field_validator("callback", mode="before")
    @classmethod
    def _resolve_callback(cls, value: Any) -> Any:
        return _resolve_callable(value)

    @classmethod
    def from_simple(cls, simple: SimpleMapEntry) -> StructuredRemoval:
        return cls.model_validate({"hook": simple.hook, "callback": simple.target})

    def to_entry(self) -> QueueEntry:
        return QueueEntry(self.hook, CallbackTarget(self.callback), self.priority, self.condition)


class StructuredValue(_EntryModel):
    """Forced boolean value for a hook."""

    value: StrictBool

    @classmethod
    def from_simple(cls, simple: SimpleMapEntry) -> StructuredValue:
        return cls.model_validate({"hook": simple.hook, "value": simple.target})

    def to_entry(self) -> QueueEntry:
        return QueueEntry(self.hook, ConstantValue(self.value), self.priority, self.condition)


class StructuredMethod(_EntryModel):
    """Removal of methods by class and method name."""

    class_name: str = Field(min_length=1, validation_alias=AliasChoices("class_name", "class"))
    method_name: str = Field(min_length=1, validation_alias=AliasChoices("method_name", "method"))

    @classmethod
    def from_simple(cls, simple: SimpleMapEntry) -> StructuredMethod:
        """Build from ``hook: "ClassName.method_name"``."""
        target = simple.target
        if not isinstance(target, str) or "." not in target:
            raise InvalidEntryError(f"Expected 'ClassName.method_name' for hook '{simple.hook}'", raw=simple)
        class_name, method_name = target.rsplit(".", 1)
        return cls.model_validate({"hook": simple.hook, "class_name": class_name, "method_name": method_name})

    def to_entry(self) -> QueueEntry:
        return QueueEntry(
            self.hook,
            ClassMethodTarget(self.class_name, self.method_name),
            self.priority,
            self.condition,
        )


ENTRY_MODELS: dict[str, type[_EntryModel]] = {
    "remove_callbacks": StructuredRemoval,
    "set_values": StructuredValue,
    "remove_methods": StructuredMethod,
}


def _report(error_callback: ErrorCallback | None, error: Exception) -> None:
    logger.warning("Skipping invalid entry: %s", error)
    if error_callback is not None:
        error_callback(error)


def _first_error(e: ValidationError) -> str:
    errors = e.errors()
    if not errors:
        return str(e)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg', '')}" if location else first.get("msg", "")


def parse_entry(kind: EntryKind, item: SimpleMapEntry | StructuredEntry | Any) -> QueueEntry:
    """Validate one input item and convert it to a queue entry.

    Raises:
        InvalidEntryError: If the item is malformed
    """
    model = ENTRY_MODELS[kind]
    try:
        if isinstance(item, SimpleMapEntry):
            parsed = model.from_simple(item)
        elif isinstance(item, StructuredEntry):
            parsed = model.model_validate(dict(item.fields))
        else:
            raise InvalidEntryError(f"Expected a mapping entry, got {type(item).__name__}", raw=item)
    except ValidationError as e:
        raise InvalidEntryError(f"Invalid {kind} entry ({_first_error(e)})", raw=item) from e
    return parsed.to_entry()


def parse_entries(
    kind: EntryKind,
    raw: Mapping[str, Any] | list[Any],
    error_callback: ErrorCallback | None = None,
) -> list[QueueEntry]:
    """Parse builder input into entries, reporting and skipping bad items.

    Args:
        kind: Which operation the entries are for
        raw: Simple map or list of structured mappings
        error_callback: Receives an InvalidEntryError per skipped item

    Returns:
        Entries in input order
    """
    entries: list[QueueEntry] = []
    for item in iter_raw_entries(raw):
        try:
            entries.append(parse_entry(kind, item))
        except InvalidEntryError as e:
            _report(error_callback, e)
    return entries


def build_queue(
    kind: EntryKind,
    raw: Mapping[str, Any] | list[Any],
    *,
    registry: HostRegistry | None = None,
    default_priority: int | None = None,
    global_condition: Condition | None = None,
    error_callback: ErrorCallback | None = None,
    hook: str | None = None,
    hook_priority: int | None = None,
    strict_matching: bool | None = None,
    case_sensitive: bool | None = None,
    config: UnhookerConfig | None = None,
) -> HookQueue | None:
    """Build, fill and commit a queue for one kind of operation.

    Unset options fall back to ``config``, or to the loaded global
    configuration when no config is given.

    Returns:
        The committed queue, or None if building it failed
    """
    from unhooker.config import get_config

    try:
        if kind not in ENTRY_MODELS:
            raise ValueError(f"Unknown operation '{kind}'")
        if config is None:
            config = get_config()
        priority = config.default_priority if default_priority is None else default_priority

        if kind == "remove_callbacks":
            queue = removal_queue(registry, default_priority=priority, global_condition=global_condition)
        elif kind == "set_values":
            queue = value_queue(registry, default_priority=priority, global_condition=global_condition)
        else:
            queue = method_queue(
                registry,
                strict_matching=config.strict_matching if strict_matching is None else strict_matching,
                case_sensitive=config.case_sensitive if case_sensitive is None else case_sensitive,
                default_priority=priority,
                global_condition=global_condition,
            )

        if hook:
            queue.set_deferred_binding(hook, config.hook_priority if hook_priority is None else hook_priority)

        for entry in parse_entries(kind, raw, error_callback):
            queue.add(entry)

        queue.commit()
        return queue

    except Exception as e:
        logger.error("Failed to build %s queue: %s: %s", kind, type(e).__name__, str(e))
        if error_callback is not None:
            error_callback(e)
        return None


def remove_actions(
    actions: Mapping[str, Any] | list[Any],
    default_priority: int | None = None,
    global_condition: Condition | None = None,
    error_callback: ErrorCallback | None = None,
    **options: Any,
) -> HookQueue | None:
    """Remove callbacks from hooks.

    Example:
        remove_actions({"init": legacy_setup})
        remove_actions([{"hook": "init", "callback": "myapp.setup", "priority": 5}])
    """
    return build_queue(
        "remove_callbacks",
        actions,
        default_priority=default_priority,
        global_condition=global_condition,
        error_callback=error_callback,
        **options,
    )


def set_filters(
    filters: Mapping[str, Any] | list[Any],
    global_condition: Condition | None = None,
    error_callback: ErrorCallback | None = None,
    **options: Any,
) -> HookQueue | None:
    """Force hooks to return constant booleans.

    Example:
        set_filters({"show_admin_bar": False})
    """
    return build_queue(
        "set_values",
        filters,
        global_condition=global_condition,
        error_callback=error_callback,
        **options,
    )


def remove_methods(
    methods: Mapping[str, Any] | list[Any],
    default_priority: int | None = None,
    global_condition: Condition | None = None,
    error_callback: ErrorCallback | None = None,
    **options: Any,
) -> HookQueue | None:
    """Remove callbacks bound as methods of a named class.

    Example:
        remove_methods({"init": "LegacyPlugin.register"}, strict_matching=True)
    """
    return build_queue(
        "remove_methods",
        methods,
        default_priority=default_priority,
        global_condition=global_condition,
        error_callback=error_callback,
        **options,
    )
