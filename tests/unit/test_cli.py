"""Tests for the protomock CLI."""

from __future__ import annotations

import json
from importlib.metadata import version
from pathlib import Path

import pytest
from typer.testing import CliRunner

from protomock import __version__, cli
from protomock.cli import app, module_filename

runner = CliRunner()


@pytest.fixture
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep rich tables on one line per row."""
    monkeypatch.setattr(cli.console, "width", 200)


@pytest.fixture
def invalid_spec_file(tmp_path: Path) -> Path:
    path = tmp_path / "invalid.toml"
    path.write_text(
        """\
interface_name = "Broken"

[[members]]
kind = "operation"
name = "_hidden"
"""
    )
    return path


class TestModuleFilename:
    @pytest.mark.parametrize(
        ("mock_name", "expected"),
        [
            ("UserServiceMock", "user_service_mock.py"),
            ("_ClockMock", "clock_mock.py"),
            ("HTTPClientMock", "httpclient_mock.py"),
            ("Storage2Mock", "storage2_mock.py"),
        ],
    )
    def test_snake_case(self, mock_name: str, expected: str) -> None:
        assert module_filename(mock_name) == expected


# ---------------------------------------------------------------------------
# protomock generate
# ---------------------------------------------------------------------------


class TestGenerate:
    def test_writes_one_module_per_mock(self, spec_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "mocks"
        result = runner.invoke(app, ["generate", str(spec_file), "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in out.iterdir()) == [
            "processor_mock.py",
            "user_service_mock.py",
        ]
        assert "Generated:" in result.output
        source = (out / "user_service_mock.py").read_text()
        assert "class UserServiceMock(UserService):" in source
        assert '__all__ = ["UserServiceMock"]' in source

    def test_stdout(self, spec_file: Path) -> None:
        result = runner.invoke(app, ["generate", str(spec_file), "--output", "-"])

        assert result.exit_code == 0
        assert "class UserServiceMock(UserService):" in result.output
        assert "class ProcessorMock(Processor):" in result.output
        assert "Generated:" not in result.output

    def test_check_up_to_date(self, spec_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "mocks"
        runner.invoke(app, ["generate", str(spec_file), "-o", str(out)])

        result = runner.invoke(app, ["generate", str(spec_file), "-o", str(out), "--check"])

        assert result.exit_code == 0
        assert "2 mock(s) up to date" in result.output

    def test_check_stale(self, spec_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "mocks"
        runner.invoke(app, ["generate", str(spec_file), "-o", str(out)])
        (out / "processor_mock.py").write_text("# edited\n")

        result = runner.invoke(app, ["generate", str(spec_file), "-o", str(out), "--check"])

        assert result.exit_code == 1
        assert "Out of date:" in result.output
        assert "processor_mock.py" in result.output

    def test_check_undecodable_file_is_stale(self, spec_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "mocks"
        runner.invoke(app, ["generate", str(spec_file), "-o", str(out)])
        (out / "user_service_mock.py").write_bytes(b"# \xff\xfe\n")

        result = runner.invoke(app, ["generate", str(spec_file), "-o", str(out), "--check"])

        assert result.exit_code == 1
        assert "user_service_mock.py" in result.output
        assert "processor_mock.py" not in result.output

    def test_check_does_not_write(self, spec_file: Path, tmp_path: Path) -> None:
        out = tmp_path / "mocks"
        result = runner.invoke(app, ["generate", str(spec_file), "-o", str(out), "--check"])

        assert result.exit_code == 1
        assert not out.exists()

    def test_legacy_lock(self, tmp_path: Path) -> None:
        spec = tmp_path / "storage.json"
        spec.write_text(
            '{"interface_name": "Storage", "concurrency": "thread_safe",'
            ' "members": [{"kind": "operation", "name": "flush"}]}'
        )

        result = runner.invoke(app, ["generate", str(spec), "-o", "-", "--legacy-lock"])

        assert result.exit_code == 0
        assert "LegacyLock(self._Storage())" in result.output
        assert "HAS_MUTEX" not in result.output

    def test_config_output_dir(self, spec_file: Path, tmp_path: Path) -> None:
        (tmp_path / "protomock.toml").write_text('output_dir = "generated"\nmock_suffix = "Fake"\n')

        result = runner.invoke(app, ["generate", str(spec_file)])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "generated" / "user_service_fake.py").exists()

    def test_invalid_specification(self, invalid_spec_file: Path) -> None:
        result = runner.invoke(app, ["generate", str(invalid_spec_file), "-o", "-"])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "underscore" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["generate", str(tmp_path / "absent.toml")])

        assert result.exit_code == 1
        assert "cannot read file" in result.output


# ---------------------------------------------------------------------------
# protomock validate
# ---------------------------------------------------------------------------


class TestValidate:
    def test_valid(self, spec_file: Path) -> None:
        result = runner.invoke(app, ["validate", str(spec_file)])

        assert result.exit_code == 0
        assert "OK: 2 specification(s) valid" in result.output

    def test_invalid(self, invalid_spec_file: Path) -> None:
        result = runner.invoke(app, ["validate", str(invalid_spec_file)])

        assert result.exit_code == 1
        assert "ERROR: Broken:" in result.output

    def test_warnings_do_not_fail(self, tmp_path: Path) -> None:
        spec = tmp_path / "factory.toml"
        spec.write_text(
            """\
interface_name = "Factory"

[[members]]
kind = "operation"
name = "make"
returns = "T"
generic_parameters = ["T"]
"""
        )

        result = runner.invoke(app, ["validate", str(spec)])

        assert result.exit_code == 0
        assert "WARNING: Factory:" in result.output


# ---------------------------------------------------------------------------
# protomock inspect
# ---------------------------------------------------------------------------


@pytest.mark.usefixtures("wide_console")
class TestInspect:
    def test_shows_overload_identifiers(self, spec_file: Path) -> None:
        result = runner.invoke(app, ["inspect", str(spec_file)])

        assert result.exit_code == 0, result.output
        assert "ProcessorMock" in result.output
        assert "process_Int" in result.output
        assert "process_Str" in result.output
        assert "fetch_user" in result.output
        assert "storage: direct" in result.output

    def test_shows_property_backing_fields(self, spec_file: Path) -> None:
        result = runner.invoke(app, ["inspect", str(spec_file)])

        assert result.exit_code == 0, result.output
        assert "token: str { get }" in result.output
        assert "(backing _token)" in result.output
        assert "nickname: str | None { get set }" in result.output
        assert "_nickname" not in result.output

    def test_json_property_and_operation(self, tmp_path: Path) -> None:
        spec = tmp_path / "session.json"
        spec.write_text(
            json.dumps(
                {
                    "interface_name": "Session",
                    "members": [
                        {"kind": "property", "name": "token", "type": "str"},
                        {"kind": "operation", "name": "ping", "returns": "bool"},
                    ],
                }
            )
        )

        result = runner.invoke(app, ["inspect", str(spec)])

        assert result.exit_code == 0, result.output
        assert "SessionMock" in result.output
        assert "ping" in result.output

    def test_invalid(self, invalid_spec_file: Path) -> None:
        result = runner.invoke(app, ["inspect", str(invalid_spec_file)])

        assert result.exit_code == 1
        assert "invalid specification" in result.output


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert result.output.startswith(f"protomock {__version__}\n")
        assert "Python" in result.output

    def test_version_matches_distribution_metadata(self) -> None:
        assert __version__ == version("protomock")
