"""Tests for the command-line entry point."""

import json

import pytest

from installorder.log_config import clear_context, configure_logging
from main import main, main_cli, parse_args


@pytest.fixture(autouse=True)
def isolated_cli(tmp_path, monkeypatch):
    """Run each test in an empty directory with logging on stderr."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("INSTALLORDER_MANIFEST_PATH", raising=False)
    configure_logging(level="WARNING")
    yield
    clear_context()
    configure_logging(level="WARNING")


@pytest.fixture
def manifest(tmp_path):
    """Manifest where A and B share the dependency D."""
    path = tmp_path / "shared_dependencies.json"
    path.write_text(
        json.dumps(
            {
                "packages": [
                    {"name": "A", "dependencies": ["B", "C"]},
                    {"name": "B", "dependencies": ["D"]},
                    {"name": "C", "dependencies": ["D"]},
                    {"name": "D", "dependencies": []},
                ],
            },
        ),
    )
    return str(path)


@pytest.fixture
def cyclic_manifest(tmp_path):
    """Manifest where A and B depend on each other."""
    path = tmp_path / "cyclic.json"
    path.write_text(
        json.dumps(
            {
                "packages": [
                    {"name": "A", "dependencies": ["B"]},
                    {"name": "B", "dependencies": ["A"]},
                ],
            },
        ),
    )
    return str(path)


def run(capsys, *argv: str) -> tuple[int, list[str], str]:
    """Run the CLI and return (exit code, stdout lines, stderr)."""
    exit_code = main_cli(parse_args(list(argv)))
    captured = capsys.readouterr()
    return exit_code, captured.out.splitlines(), captured.err


class TestParseArgs:
    """Test argument parsing."""

    def test_debug_sets_log_level(self):
        """Test --debug selects DEBUG logging."""
        args = parse_args(["--debug", "all", "-m", "packages.json"])

        assert args.log_level == "DEBUG"
        assert args.command == "all"
        assert args.manifest == "packages.json"

    def test_command_required(self):
        """Test a sub-command must be given."""
        with pytest.raises(SystemExit) as exc_info:
            parse_args([])

        assert exc_info.value.code == 2

    def test_graph_format_case_insensitive(self):
        """Test the graph format is normalized."""
        assert parse_args(["graph", "--format", "DOT"]).format == "dot"


class TestCommands:
    """Test each sub-command against a manifest."""

    def test_packages(self, capsys, manifest):
        """Test listing packages."""
        exit_code, lines, _ = run(capsys, "packages", "-m", manifest)

        assert exit_code == 0
        assert lines == ["A", "B", "C", "D"]

    def test_order(self, capsys, manifest):
        """Test the installation order of one package."""
        exit_code, lines, _ = run(capsys, "order", "A", "-m", manifest)

        assert exit_code == 0
        assert lines == ["D", "B", "C", "A"]

    def test_all(self, capsys, manifest):
        """Test the global installation order."""
        exit_code, lines, _ = run(capsys, "all", "-m", manifest)

        assert exit_code == 0
        assert lines == ["D", "B", "C", "A"]

    def test_to_install(self, capsys, manifest):
        """Test packages needed for A when B is installed."""
        exit_code, lines, _ = run(capsys, "to-install", "A", "B", "-m", manifest)

        assert exit_code == 0
        assert lines == ["C", "A"]

    def test_max_deps(self, capsys, manifest):
        """Test the root package with the most dependencies."""
        exit_code, lines, _ = run(capsys, "max-deps", "-m", manifest)

        assert exit_code == 0
        assert lines == ["A"]

    def test_validate_valid(self, capsys, manifest):
        """Test validating an acyclic manifest."""
        exit_code, lines, _ = run(capsys, "validate", "-m", manifest)

        assert exit_code == 0
        assert lines[0] == "Validation Status: PASS"

    def test_validate_cyclic(self, capsys, cyclic_manifest):
        """Test validating a cyclic manifest fails."""
        exit_code, lines, _ = run(capsys, "validate", "-m", cyclic_manifest)

        assert exit_code == 1
        assert lines[0] == "Validation Status: FAIL"
        assert "  1. A -> B -> A" in lines

    def test_graph(self, capsys, manifest):
        """Test rendering the graph."""
        exit_code, lines, _ = run(capsys, "graph", "--format", "dot", "-m", manifest)

        assert exit_code == 0
        assert lines[0] == "digraph DependencyGraph {"
        assert '    "D" -> "B";' in lines


class TestErrors:
    """Test failure exit codes."""

    def test_missing_package(self, capsys, manifest):
        """Test an unknown package exits with 1."""
        exit_code, lines, err = run(capsys, "order", "Z", "-m", manifest)

        assert exit_code == 1
        assert lines == []
        assert "Package not found: 'Z'" in err

    def test_cycle(self, capsys, cyclic_manifest):
        """Test a cycle exits with 1."""
        exit_code, _, err = run(capsys, "order", "A", "-m", cyclic_manifest)

        assert exit_code == 1
        assert "A -> B -> A" in err

    def test_missing_manifest_file(self, capsys, tmp_path):
        """Test a missing manifest exits with 1."""
        exit_code, _, err = run(capsys, "all", "-m", str(tmp_path / "fake.json"))

        assert exit_code == 1
        assert "Manifest file not found" in err

    def test_invalid_manifest(self, capsys, tmp_path):
        """Test a malformed manifest exits with 1."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"modules": []}))

        exit_code, _, err = run(capsys, "all", "-m", str(path))

        assert exit_code == 1
        assert "'packages' list" in err

    def test_undecodable_manifest(self, capsys, tmp_path):
        """Test a manifest that is not UTF-8 exits with 1."""
        path = tmp_path / "latin1.json"
        path.write_bytes(b'{"packages": [{"name": "\xff", "dependencies": []}]}')

        exit_code, lines, err = run(capsys, "packages", "-m", str(path))

        assert exit_code == 1
        assert lines == []
        assert "Invalid manifest" in err

    def test_config_not_a_mapping(self, capsys, tmp_path, manifest):
        """Test a configuration file holding a list exits with 1."""
        config = tmp_path / "list-config.yaml"
        config.write_text("- manifest\n- logging_level\n")

        exit_code, _, err = run(capsys, "-c", str(config), "all", "-m", manifest)

        assert exit_code == 1
        assert "must contain a mapping" in err

    def test_no_manifest(self, capsys):
        """Test running without any manifest exits with 1."""
        exit_code, _, err = run(capsys, "all")

        assert exit_code == 1
        assert "no manifest given" in err

    def test_missing_config(self, capsys, manifest):
        """Test an explicit but missing config file exits with 1."""
        exit_code, _, err = run(capsys, "-c", "missing.yaml", "all", "-m", manifest)

        assert exit_code == 1
        assert "Configuration file not found" in err


class TestConfiguration:
    """Test the CLI picks up configuration."""

    def test_manifest_from_config(self, capsys, tmp_path, manifest):
        """Test the manifest path falls back to the configuration file."""
        (tmp_path / "installorder.yaml").write_text(f"manifest:\n  path: {manifest}\n")

        exit_code, lines, _ = run(capsys, "order", "B")

        assert exit_code == 0
        assert lines == ["D", "B"]

    def test_manifest_keys_from_config(self, capsys, tmp_path):
        """Test configured manifest keys are used for parsing."""
        path = tmp_path / "custom.yaml"
        path.write_text("modules:\n  - id: app\n    requires: [lib]\n")
        config = tmp_path / "custom-config.yaml"
        config.write_text("manifest:\n  packages_key: modules\n  name_key: id\n  dependencies_key: requires\n")

        exit_code, lines, _ = run(capsys, "-c", str(config), "order", "app", "-m", str(path))

        assert exit_code == 0
        assert lines == ["lib", "app"]


def test_main_exits_with_code(capsys, manifest):
    """Test main() exits with the command's exit code."""
    with pytest.raises(SystemExit) as exc_info:
        main(["order", "A", "-m", manifest])

    assert exc_info.value.code == 0
    assert capsys.readouterr().out.splitlines() == ["D", "B", "C", "A"]
