"""Tests for the unhooker CLI."""

import json
from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console

from unhooker.cli import Check, Match, ShowConfig, check_config, load_config, main, show_config
from unhooker.config import BatchConfig, UnhookerConfig, clear_config_instance, set_config_instance

VALID_YAML = """\
unhooker:
  batches:
    - name: quiet-admin
      operation: set_values
      entries:
        show_admin_bar: false
    - name: legacy-init
      operation: remove_methods
      hook: plugins_loaded
      entries:
        init: LegacyPlugin.register
"""

BROKEN_YAML = """\
unhooker:
  batches:
    - name: broken
      operation: remove_callbacks
      condition: hook_fixtures.nope
      entries:
        - hook: init
        - hook: init
          callback: hook_fixtures.setup_theme
"""


@pytest.fixture(autouse=True)
def cleanup():
    """Reset the global configuration."""
    clear_config_instance()
    yield
    clear_config_instance()


@pytest.fixture
def console() -> Console:
    return Console(file=StringIO(), width=200)


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "unhooker.yaml"
    path.write_text(text)
    return path


class TestLoadConfig:
    """Test configuration loading for commands."""

    def test_missing_file(self, tmp_path: Path, capsys) -> None:
        """Test a missing file exits with an error."""
        with pytest.raises(SystemExit) as exc_info:
            load_config(tmp_path / "missing.yaml")

        assert exc_info.value.code == 1
        assert "Configuration not found" in capsys.readouterr().err

    def test_directory_path(self, tmp_path: Path) -> None:
        """Test a directory resolves to the unhooker.yaml inside it."""
        write_config(tmp_path, VALID_YAML)
        config = load_config(tmp_path)
        assert len(config.batches) == 2

    def test_invalid_file(self, tmp_path: Path, capsys) -> None:
        """Test invalid YAML exits with an error."""
        path = write_config(tmp_path, "unhooker: [unclosed")
        with pytest.raises(SystemExit) as exc_info:
            load_config(path)

        assert exc_info.value.code == 1
        assert "Invalid YAML" in capsys.readouterr().err

    def test_discovered_config(self) -> None:
        """Test no path uses the global configuration."""
        config = UnhookerConfig(default_priority=7)
        set_config_instance(config)
        assert load_config(None) is config


class TestCheckConfig:
    """Test the check command output."""

    def test_no_batches(self, console: Console) -> None:
        """Test empty configuration."""
        assert check_config(UnhookerConfig(), console) == 0
        assert "No batches configured" in console.file.getvalue()

    def test_valid_config(self, tmp_path: Path, console: Console) -> None:
        """Test every entry is listed and no problems reported."""
        config = UnhookerConfig.from_yaml(write_config(tmp_path, VALID_YAML))

        assert check_config(config, console) == 0
        output = console.file.getvalue()
        assert "show_admin_bar" in output
        assert "LegacyPlugin.register" in output
        assert "on plugins_loaded @ 10" in output
        assert "All entries valid" in output

    def test_problems_reported(self, tmp_path: Path, console: Console) -> None:
        """Test bad conditions and entries are counted."""
        config = UnhookerConfig.from_yaml(write_config(tmp_path, BROKEN_YAML))

        assert check_config(config, console) == 2
        output = console.file.getvalue()
        assert "2 problem(s) found" in output
        assert "condition:" in output

    def test_batch_priority_overrides(self, console: Console) -> None:
        """Test batch defaults win over global defaults."""
        config = UnhookerConfig(
            default_priority=10,
            batches=[BatchConfig(operation="set_values", default_priority=99, entries={"flag": True})],
        )
        check_config(config, console)
        assert "99" in console.file.getvalue()


class TestShowConfig:
    """Test the show-config command output."""

    def test_json_output(self, capsys) -> None:
        """Test JSON output is parseable."""
        config = UnhookerConfig(default_priority=5, batches=[BatchConfig(name="b", operation="set_values")])
        show_config(config, json_output=True)

        data = json.loads(capsys.readouterr().out)
        assert data["default_priority"] == 5
        assert data["batches"][0]["name"] == "b"

    def test_table_output(self, console: Console) -> None:
        """Test table output lists batch labels."""
        config = UnhookerConfig(batches=[BatchConfig(operation="remove_methods")])
        show_config(config, console=console)
        output = console.file.getvalue()
        assert "default_priority" in output
        assert "remove_methods" in output


class TestMain:
    """Test command dispatch."""

    def test_match(self, capsys) -> None:
        """Test a matching pair exits 0."""
        with pytest.raises(SystemExit) as exc_info:
            main(Match(observed="My_Foo_Bar", target="foo_bar"))

        assert exc_info.value.code == 0
        assert "(contains_insensitive): match" in capsys.readouterr().out

    def test_no_match(self, capsys) -> None:
        """Test a non-matching pair exits 1."""
        with pytest.raises(SystemExit) as exc_info:
            main(Match(observed="My_Foo_Bar", target="Foo_Bar", strict=True, case_sensitive=True))

        assert exc_info.value.code == 1
        assert "no match" in capsys.readouterr().out

    def test_check_valid(self, tmp_path: Path) -> None:
        """Test check exits 0 for a valid file."""
        path = write_config(tmp_path, VALID_YAML)
        with pytest.raises(SystemExit) as exc_info:
            main(Check(config=path))
        assert exc_info.value.code == 0

    def test_check_problems(self, tmp_path: Path) -> None:
        """Test check exits 1 when problems are found."""
        path = write_config(tmp_path, BROKEN_YAML)
        with pytest.raises(SystemExit) as exc_info:
            main(Check(config=path))
        assert exc_info.value.code == 1

    def test_show_config_json(self, tmp_path: Path, capsys) -> None:
        """Test show-config prints the loaded file."""
        path = write_config(tmp_path, VALID_YAML)
        main(ShowConfig(config=path, json=True))

        data = json.loads(capsys.readouterr().out)
        assert [b["name"] for b in data["batches"]] == ["quiet-admin", "legacy-init"]
