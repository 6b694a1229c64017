"""Tests for the convenience builders."""

import logging
from unittest.mock import MagicMock

import pytest

from hook_fixtures import LegacyPlugin, load_widgets, setup_theme
from unhooker.builders import (
    ENTRY_MODELS,
    SimpleMapEntry,
    StructuredEntry,
    _EntryModel,
    build_queue,
    iter_raw_entries,
    parse_entries,
    parse_entry,
    remove_actions,
    remove_methods,
    resolve_import_path,
    set_filters,
)
from unhooker.config import UnhookerConfig, clear_config_instance, set_config_instance
from unhooker.exceptions import InvalidEntryError
from unhooker.queue.entry import CallbackTarget, ClassMethodTarget, ConstantValue
from unhooker.queue.hook_queue import CommitState
from unhooker.queue.strategies import return_false, return_true
from unhooker.registry import CallbackRegistry, clear_registry


@pytest.fixture
def registry():
    """Create a registry with callbacks on 'init'."""
    registry = CallbackRegistry()
    registry.register_callback("init", setup_theme, 10)
    registry.register_callback("init", load_widgets, 5)
    return registry


@pytest.fixture
def errors():
    """Collect errors passed to the error callback."""
    collected: list[Exception] = []
    return collected


@pytest.fixture(autouse=True)
def cleanup():
    """Use default config and a fresh global registry per test."""
    set_config_instance(UnhookerConfig())
    yield
    clear_config_instance()
    clear_registry()


class TestResolveImportPath:
    """Test dotted path resolution."""

    def test_function(self):
        """Test resolving a module-level function."""
        assert resolve_import_path("hook_fixtures.setup_theme") is setup_theme

    def test_nested_attribute(self):
        """Test resolving an attribute of a class."""
        assert resolve_import_path("hook_fixtures.LegacyPlugin.boot") == LegacyPlugin.boot

    def test_missing_attribute(self):
        """Test a missing attribute raises ValueError."""
        with pytest.raises(ValueError, match="Cannot resolve"):
            resolve_import_path("hook_fixtures.does_not_exist")

    def test_missing_module(self):
        """Test an unimportable path raises ValueError."""
        with pytest.raises(ValueError, match="Cannot import"):
            resolve_import_path("no_such_module_anywhere.func")


class TestInputVariants:
    """Test splitting raw input into variants."""

    def test_mapping_yields_simple_entries(self):
        """Test simple maps become SimpleMapEntry items."""
        items = list(iter_raw_entries({"init": setup_theme, "wp_head": load_widgets}))
        assert items == [SimpleMapEntry("init", setup_theme), SimpleMapEntry("wp_head", load_widgets)]

    def test_list_yields_structured_entries(self):
        """Test lists of mappings become StructuredEntry items."""
        items = list(iter_raw_entries([{"hook": "init"}, "junk"]))
        assert items == [StructuredEntry({"hook": "init"}), "junk"]


class TestEntryModels:
    """Test the entry model hierarchy."""

    def test_base_is_abstract(self):
        """Test the shared base cannot be instantiated."""
        with pytest.raises(TypeError):
            _EntryModel(hook="init")

    @pytest.mark.parametrize("kind", sorted(ENTRY_MODELS))
    def test_concrete_models(self, kind):
        """Test every operation has a concrete model."""
        model = ENTRY_MODELS[kind]
        assert issubclass(model, _EntryModel)
        assert not model.__abstractmethods__


class TestParseEntry:
    """Test validation of single entries."""

    def test_structured_removal(self):
        """Test a full structured removal."""
        entry = parse_entry(
            "remove_callbacks",
            StructuredEntry({"hook": "init", "callback": setup_theme, "priority": 5}),
        )
        assert entry.hook_name == "init"
        assert entry.payload == CallbackTarget(setup_theme)
        assert entry.priority == 5
        assert entry.condition is None

    def test_legacy_aliases(self):
        """Test 'tag' and 'function' keys are accepted."""
        entry = parse_entry("remove_callbacks", StructuredEntry({"tag": "init", "function": setup_theme}))
        assert entry.hook_name == "init"
        assert entry.payload == CallbackTarget(setup_theme)

    def test_callback_and_condition_from_import_path(self):
        """Test string callbacks and conditions are imported."""
        entry = parse_entry(
            "remove_callbacks",
            StructuredEntry(
                {
                    "hook": "init",
                    "callback": "hook_fixtures.setup_theme",
                    "condition": "hook_fixtures.condition_false",
                }
            ),
        )
        assert entry.payload == CallbackTarget(setup_theme)
        assert entry.condition() is False

    def test_missing_callback(self):
        """Test missing required keys are rejected."""
        with pytest.raises(InvalidEntryError, match="callback"):
            parse_entry("remove_callbacks", StructuredEntry({"hook": "init"}))

    def test_non_callable_callback(self):
        """Test non-callables are rejected."""
        with pytest.raises(InvalidEntryError):
            parse_entry("remove_callbacks", StructuredEntry({"hook": "init", "callback": 42}))

    def test_import_path_to_non_callable(self):
        """Test paths resolving to non-callables are rejected."""
        with pytest.raises(InvalidEntryError):
            parse_entry("remove_callbacks", SimpleMapEntry("init", "hook_fixtures.not_callable"))

    def test_empty_hook(self):
        """Test empty hook names are rejected."""
        with pytest.raises(InvalidEntryError):
            parse_entry("set_values", StructuredEntry({"hook": "", "value": True}))

    def test_value_must_be_bool(self):
        """Test values are strict booleans."""
        with pytest.raises(InvalidEntryError):
            parse_entry("set_values", SimpleMapEntry("flag", "yes"))
        with pytest.raises(InvalidEntryError):
            parse_entry("set_values", SimpleMapEntry("flag", 1))

    def test_simple_value(self):
        """Test a simple map value entry."""
        entry = parse_entry("set_values", SimpleMapEntry("flag", False))
        assert entry.payload == ConstantValue(False)

    def test_simple_method(self):
        """Test 'ClassName.method' simple method entries."""
        entry = parse_entry("remove_methods", SimpleMapEntry("init", "LegacyPlugin.register"))
        assert entry.payload == ClassMethodTarget("LegacyPlugin", "register")

    def test_simple_method_without_dot(self):
        """Test simple method entries need a dot."""
        with pytest.raises(InvalidEntryError, match="ClassName.method_name"):
            parse_entry("remove_methods", SimpleMapEntry("init", "register"))

    def test_structured_method_aliases(self):
        """Test 'class' and 'method' keys are accepted."""
        entry = parse_entry(
            "remove_methods",
            StructuredEntry({"hook": "init", "class": "LegacyPlugin", "method": "register", "priority": 3}),
        )
        assert entry.payload == ClassMethodTarget("LegacyPlugin", "register")
        assert entry.priority == 3

    def test_non_mapping_item(self):
        """Test list items that are not mappings are rejected."""
        with pytest.raises(InvalidEntryError, match="Expected a mapping"):
            parse_entry("set_values", ["flag", True])


class TestParseEntries:
    """Test batch parsing with error reporting."""

    def test_bad_entries_skipped_and_reported(self, errors, caplog):
        """Test malformed entries are skipped and each is reported."""
        raw = [
            {"hook": "init", "callback": setup_theme},
            {"hook": "init"},
            "junk",
            {"hook": "wp_head", "callback": load_widgets},
        ]

        with caplog.at_level(logging.WARNING):
            entries = parse_entries("remove_callbacks", raw, errors.append)

        assert [e.hook_name for e in entries] == ["init", "wp_head"]
        assert len(errors) == 2
        assert all(isinstance(e, InvalidEntryError) for e in errors)
        assert errors[1].raw == "junk"
        assert "Skipping invalid entry" in caplog.text

    def test_without_error_callback(self):
        """Test bad entries are skipped silently without a callback."""
        entries = parse_entries("set_values", {"good": True, "bad": "nope"})
        assert [e.hook_name for e in entries] == ["good"]


class TestRemoveActions:
    """Test the remove_actions builder."""

    def test_simple_map(self, registry):
        """Test a simple map removes callbacks at the default priority."""
        queue = remove_actions({"init": setup_theme}, registry=registry)

        assert queue is not None
        assert queue.state is CommitState.COMMITTED
        assert queue.verify_results() is True
        assert not registry.has_callback("init", setup_theme)

    def test_structured_with_priority(self, registry):
        """Test structured entries use their own priority."""
        queue = remove_actions([{"hook": "init", "callback": load_widgets, "priority": 5}], registry=registry)
        assert queue.verify_results() is True

    def test_default_priority(self, registry):
        """Test the default priority applies to simple entries."""
        queue = remove_actions({"init": load_widgets}, default_priority=5, registry=registry)
        assert queue.verify_results() is True

    def test_default_priority_from_config(self, registry):
        """Test the configured default priority is used when unset."""
        set_config_instance(UnhookerConfig(default_priority=5))
        queue = remove_actions({"init": load_widgets}, registry=registry)
        assert queue.verify_results() is True

    def test_global_condition(self, registry):
        """Test a false global condition leaves the registry alone."""
        queue = remove_actions({"init": setup_theme}, global_condition=lambda: False, registry=registry)
        assert queue.get_results() == []
        assert registry.has_callback("init", setup_theme)

    def test_deferred(self, registry):
        """Test builders can defer to a hook."""
        queue = remove_actions({"init": setup_theme}, registry=registry, hook="setup", hook_priority=1)

        assert queue.state is CommitState.DEFERRED
        assert registry.has_callback("init", setup_theme)
        registry.do_action("setup")
        assert not registry.has_callback("init", setup_theme)

    def test_bad_entries_do_not_abort(self, registry, errors):
        """Test the batch continues past malformed entries."""
        queue = remove_actions(
            [{"hook": "init"}, {"hook": "init", "callback": setup_theme}],
            registry=registry,
            error_callback=errors.append,
        )
        assert len(queue) == 1
        assert len(errors) == 1

    def test_unrecoverable_error_returns_none(self, errors, caplog):
        """Test failures building the queue return None and are reported."""
        host = MagicMock()
        host.register_callback.side_effect = RuntimeError("host unavailable")

        with caplog.at_level(logging.ERROR):
            queue = remove_actions({"init": setup_theme}, registry=host, hook="setup", error_callback=errors.append)

        assert queue is None
        assert len(errors) == 1
        assert isinstance(errors[0], RuntimeError)
        assert "Failed to build remove_callbacks queue" in caplog.text

    def test_unknown_operation(self, errors):
        """Test unknown operations are reported."""
        assert build_queue("rename_hooks", {}, error_callback=errors.append) is None
        assert isinstance(errors[0], ValueError)


class TestSetFilters:
    """Test the set_filters builder."""

    def test_simple_map(self, registry):
        """Test values are injected as constant callbacks."""
        queue = set_filters({"show_admin_bar": False, "use_block_editor": True}, registry=registry)

        assert queue.verify_results() is True
        assert registry.has_callback("show_admin_bar", return_false, 10)
        assert registry.has_callback("use_block_editor", return_true, 10)

    def test_conditions(self, registry):
        """Test per-entry conditions."""
        queue = set_filters(
            [
                {"hook": "a", "value": True, "condition": lambda: False},
                {"hook": "b", "value": True, "condition": "hook_fixtures.condition_true"},
            ],
            registry=registry,
        )
        assert [r.entry.hook_name for r in queue.get_results()] == ["b"]
        assert queue.verify_results() is False


class TestRemoveMethods:
    """Test the remove_methods builder."""

    def test_simple_map(self, registry):
        """Test class-method removal from a simple map."""
        first, second = LegacyPlugin("first"), LegacyPlugin("second")
        registry.register_callback("admin_init", first.register)
        registry.register_callback("admin_init", second.register)

        queue = remove_methods({"admin_init": "legacy.register"}, registry=registry)

        assert queue.verify_results() is True
        assert registry.callbacks_at("admin_init", 10) == []

    def test_strict_matching_option(self, registry):
        """Test strictness options reach the strategy."""
        registry.register_callback("admin_init", LegacyPlugin().register)

        queue = remove_methods(
            {"admin_init": "legacy.register"},
            registry=registry,
            strict_matching=True,
        )
        assert queue.verify_results() is False
        assert queue.strategy.matcher.strict is True

    def test_matching_defaults_from_config(self, registry):
        """Test matching options fall back to configuration."""
        set_config_instance(UnhookerConfig(strict_matching=True, case_sensitive=True))
        queue = remove_methods({"admin_init": "LegacyPlugin.register"}, registry=registry)
        assert queue.strategy.matcher.strict is True
        assert queue.strategy.matcher.case_sensitive is True

    def test_module_qualified_simple_map(self, registry):
        """Test 'module.ClassName.method' targets a class by module."""
        plugin = LegacyPlugin()
        registry.register_callback("admin_init", plugin.register)

        queue = remove_methods(
            {"admin_init": "hook_fixtures.LegacyPlugin.register"},
            registry=registry,
            strict_matching=True,
            case_sensitive=True,
        )
        assert queue.verify_results() is True
        assert not registry.has_callback("admin_init", plugin.register)
