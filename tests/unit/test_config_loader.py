"""Tests for protomock configuration loading."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from protomock.core.config import (
    ProtomockConfig,
    find_config_file,
    load_config,
    parse_config,
)
from protomock.core.errors import ConfigError


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project directory with a nested specs folder."""
    (tmp_path / "specs").mkdir()
    return tmp_path


class TestFindConfigFile:
    def test_pyproject_with_tool_table(self, project: Path) -> None:
        (project / "pyproject.toml").write_text('[tool.protomock]\nmock_suffix = "Fake"\n')

        found = find_config_file(project / "specs")

        assert found == ((project / "pyproject.toml").resolve(), True)

    def test_pyproject_without_tool_table_is_skipped(self, project: Path) -> None:
        (project / "pyproject.toml").write_text('[project]\nname = "app"\n')
        assert find_config_file(project / "specs") is None

    def test_standalone_file_takes_precedence(self, project: Path) -> None:
        (project / "pyproject.toml").write_text('[tool.protomock]\nmock_suffix = "Fake"\n')
        (project / "protomock.toml").write_text('mock_suffix = "Double"\n')

        path, is_pyproject = find_config_file(project) or (None, None)

        assert path == (project / "protomock.toml").resolve()
        assert is_pyproject is False

    def test_start_may_be_a_file(self, project: Path) -> None:
        (project / "protomock.toml").write_text("")
        spec = project / "specs" / "mocks.toml"
        spec.write_text("")

        found = find_config_file(spec)

        assert found is not None
        assert found[0].name == "protomock.toml"


class TestParseConfig:
    def test_defaults(self) -> None:
        config = parse_config({})
        assert config == ProtomockConfig()

    def test_known_settings(self, tmp_path: Path) -> None:
        source = tmp_path / "protomock.toml"
        config = parse_config(
            {
                "force_legacy_lock": True,
                "runtime_module": "app.testing.runtime",
                "mock_suffix": "Fake",
                "inherit_interface": False,
                "output_dir": "tests/mocks",
            },
            source=source,
        )

        assert config.force_legacy_lock is True
        assert config.runtime_module == "app.testing.runtime"
        assert config.mock_suffix == "Fake"
        assert config.inherit_interface is False
        assert config.output_dir == tmp_path / "tests" / "mocks"
        assert config.source == source

    def test_unknown_setting_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="protomock.core.config"):
            config = parse_config({"colour": "blue"})

        assert config.warnings == ["unknown protomock setting 'colour'"]
        assert "unknown protomock setting 'colour'" in caplog.text

    def test_wrong_type(self, tmp_path: Path) -> None:
        source = tmp_path / "protomock.toml"
        with pytest.raises(ConfigError) as exc_info:
            parse_config({"force_legacy_lock": "yes"}, source=source)

        assert exc_info.value.message == "'force_legacy_lock' must be a bool, got str"
        assert str(source) in str(exc_info.value)


class TestLoadConfig:
    def test_no_file_gives_defaults(self, project: Path) -> None:
        config = load_config(project / "specs")
        assert config.source is None
        assert config.mock_suffix == "Mock"

    def test_reads_pyproject_table(self, project: Path) -> None:
        (project / "pyproject.toml").write_text(
            '[project]\nname = "app"\n\n'
            '[tool.protomock]\nforce_legacy_lock = true\noutput_dir = "generated"\n'
        )

        config = load_config(project / "specs")

        assert config.force_legacy_lock is True
        assert config.output_dir == (project / "generated").resolve()

    def test_invalid_toml(self, project: Path) -> None:
        (project / "protomock.toml").write_text("mock_suffix = \n")
        with pytest.raises(ConfigError, match="invalid TOML"):
            load_config(project)


class TestToOptions:
    def test_carries_settings(self) -> None:
        options = ProtomockConfig(mock_suffix="Fake", inherit_interface=False).to_options()
        assert options.mock_suffix == "Fake"
        assert options.inherit_interface is False
        assert options.force_legacy_lock is False

    @pytest.mark.parametrize(
        ("configured", "flag", "expected"),
        [
            (False, None, False),
            (True, None, True),
            (False, True, True),
            (True, False, False),
        ],
    )
    def test_flag_overrides_file(
        self, configured: bool, flag: bool | None, expected: bool
    ) -> None:
        config = ProtomockConfig(force_legacy_lock=configured)
        assert config.to_options(force_legacy_lock=flag).force_legacy_lock is expected
