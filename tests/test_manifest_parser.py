"""
Tests for the manifest parser module.
"""

import json

import pytest

from installorder.manifest import ManifestError, ManifestParser


class TestManifestParser:
    """Test suite for ManifestParser class."""

    @pytest.fixture
    def parser(self):
        """Fixture to create a ManifestParser instance."""
        return ManifestParser()

    # Test parsing decoded data

    def test_parse_packages(self, parser):
        """Test parsing entries keeps manifest and dependency order."""
        data = {
            "packages": [
                {"name": "A", "dependencies": ["C", "B"]},
                {"name": "B", "dependencies": []},
            ],
        }

        assert parser.parse_data(data) == [("A", ["C", "B"]), ("B", [])]

    def test_parse_missing_dependencies(self, parser):
        """Test an entry without a dependency list has no dependencies."""
        assert parser.parse_data({"packages": [{"name": "A"}]}) == [("A", [])]

    def test_parse_null_dependencies(self, parser):
        """Test a null dependency list is treated as empty."""
        assert parser.parse_data({"packages": [{"name": "A", "dependencies": None}]}) == [
            ("A", []),
        ]

    def test_parse_strips_whitespace(self, parser):
        """Test names are stripped."""
        data = {"packages": [{"name": " A ", "dependencies": [" B"]}]}

        assert parser.parse_data(data) == [("A", ["B"])]

    def test_parse_empty_package_list(self, parser):
        """Test an empty manifest yields no records."""
        assert parser.parse_data({"packages": []}) == []

    def test_custom_keys(self):
        """Test configurable keys."""
        parser = ManifestParser(packages_key="pkgs", name_key="id", dependencies_key="requires")
        data = {"pkgs": [{"id": "A", "requires": ["B"]}]}

        assert parser.parse_data(data) == [("A", ["B"])]

    # Test malformed data

    @pytest.mark.parametrize("data", [None, [], "packages"])
    def test_parse_non_mapping(self, parser, data):
        """Test a manifest that isn't a mapping is rejected."""
        with pytest.raises(ManifestError, match="must be a mapping"):
            parser.parse_data(data)

    def test_parse_missing_packages_key(self, parser):
        """Test a manifest without a package list is rejected."""
        with pytest.raises(ManifestError, match="'packages' list"):
            parser.parse_data({"modules": []})

    def test_parse_entry_not_mapping(self, parser):
        """Test package entries must be mappings."""
        with pytest.raises(ManifestError, match="entry 0 must be a mapping"):
            parser.parse_data({"packages": ["A"]})

    @pytest.mark.parametrize(
        "entry",
        [
            {"dependencies": ["B"]},
            {"name": "", "dependencies": []},
            {"name": "A", "dependencies": "B"},
            {"name": "A", "dependencies": ["B", " "]},
        ],
    )
    def test_parse_invalid_entry(self, parser, entry):
        """Test invalid entries are rejected with their index."""
        with pytest.raises(ManifestError, match="Invalid package entry 1"):
            parser.parse_data({"packages": [{"name": "ok"}, entry]})

    def test_manifest_error_is_value_error(self, parser):
        """Test ManifestError can be handled as ValueError."""
        with pytest.raises(ValueError):
            parser.parse_data({})

    # Test loading files

    def test_load_json(self, parser, tmp_path):
        """Test loading a JSON manifest."""
        path = tmp_path / "packages.json"
        path.write_text(json.dumps({"packages": [{"name": "A", "dependencies": ["B"]}]}))

        assert parser.load(path) == [("A", ["B"])]

    def test_load_yaml(self, parser, tmp_path):
        """Test loading a YAML manifest."""
        path = tmp_path / "packages.yaml"
        path.write_text(
            "packages:\n"
            "  - name: A\n"
            "    dependencies: [B, C]\n"
            "  - name: C\n"
            "    dependencies:\n"
            "      - D\n",
        )

        assert parser.load(str(path)) == [("A", ["B", "C"]), ("C", ["D"])]

    def test_load_missing_file(self, parser, tmp_path):
        """Test a missing manifest raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="Manifest file not found"):
            parser.load(tmp_path / "fake.json")

    def test_load_invalid_yaml(self, parser, tmp_path):
        """Test unparsable content raises ManifestError with the path."""
        path = tmp_path / "broken.json"
        path.write_text('{"packages": [')

        with pytest.raises(ManifestError) as exc_info:
            parser.load(path)

        assert exc_info.value.path == str(path)

    def test_load_invalid_shape_records_path(self, parser, tmp_path):
        """Test shape errors from a file carry the file path."""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        with pytest.raises(ManifestError) as exc_info:
            parser.load(path)

        assert exc_info.value.path == str(path)

    def test_load_invalid_utf8(self, parser, tmp_path):
        """Test bytes that are not UTF-8 raise ManifestError with the path."""
        path = tmp_path / "latin1.json"
        path.write_bytes(b'{"packages": [{"name": "\xff", "dependencies": []}]}')

        with pytest.raises(ManifestError, match="Invalid manifest") as exc_info:
            parser.load(path)

        assert exc_info.value.path == str(path)

    def test_load_utf8_names(self, parser, tmp_path):
        """Test non-ASCII package names are decoded as UTF-8."""
        path = tmp_path / "unicode.yaml"
        path.write_bytes("packages:\n  - name: café\n    dependencies: [naïve]\n".encode())

        assert parser.load(path) == [("café", ["naïve"])]
