"""CLI tests for bencanon commands."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from bencanon.cli.main import cli, from_json, json_depth

pytestmark = [pytest.mark.cli]


@pytest.fixture
def cli_runner():
    """Create Click CLI runner for testing."""
    return CliRunner()


@pytest.fixture
def document():
    """JSON form of the composite record example."""
    return json.dumps({"qux": "base64:cXV4", "baz": ["foo", "bar"], "bar": 5})


class TestEncodeCommand:
    """Test the encode command."""

    def test_encode_stdin(self, cli_runner, document):
        """Test encoding JSON from stdin."""
        result = cli_runner.invoke(cli, ["encode"], input=document)
        assert result.exit_code == 0, result.output
        assert result.stdout_bytes == b"d3:bari5e3:bazl3:foo3:bare3:qux3:quxe"

    def test_encode_file_to_file(self, cli_runner, document, tmp_path):
        """Test reading and writing files."""
        source = tmp_path / "doc.json"
        source.write_text(document, encoding="utf-8")
        target = tmp_path / "doc.bencode"

        result = cli_runner.invoke(cli, ["encode", str(source), "-o", str(target)])
        assert result.exit_code == 0, result.output
        assert target.read_bytes() == b"d3:bari5e3:bazl3:foo3:bare3:qux3:quxe"

    def test_encode_hex(self, cli_runner):
        """Test hex output."""
        result = cli_runner.invoke(cli, ["encode", "--hex"], input="[1]")
        assert result.exit_code == 0, result.output
        assert result.stdout_bytes == b"6c69316565\n"

    def test_custom_bytes_prefix(self, cli_runner):
        """Test a different raw bytes marker."""
        result = cli_runner.invoke(
            cli, ["encode", "--bytes-prefix", "b64!"], input='{"b64!aw==": "b64!/w=="}'
        )
        assert result.exit_code == 0, result.output
        assert result.stdout_bytes == b"d1:k1:\xffe"

    def test_depth_limit(self, cli_runner):
        """Test documents nesting past --max-depth fail."""
        result = cli_runner.invoke(cli, ["encode", "--max-depth", "1"], input="[[1]]")
        assert result.exit_code == 1
        assert "depth limit" in result.output

    def test_max_depth_above_limit(self, cli_runner):
        """Test ceilings past the supported maximum are usage errors."""
        result = cli_runner.invoke(cli, ["encode", "--max-depth", "3000"], input="[1]")
        assert result.exit_code == 2

    @pytest.mark.parametrize("doc", ["[1.5]", "true", "null", '{"a": false}'])
    def test_unsupported_json(self, cli_runner, doc):
        """Test JSON values without a bencode form."""
        result = cli_runner.invoke(cli, ["encode"], input=doc)
        assert result.exit_code == 1

    def test_invalid_json(self, cli_runner):
        """Test malformed input is reported as a usage error."""
        result = cli_runner.invoke(cli, ["encode"], input="{")
        assert result.exit_code == 2

    def test_invalid_base64(self, cli_runner):
        """Test broken base64 payloads are rejected."""
        result = cli_runner.invoke(cli, ["encode"], input='"base64:***"')
        assert result.exit_code == 2

    def test_config_file_ceiling(self, cli_runner, tmp_path):
        """Test the ceiling from a config file applies."""
        config_file = tmp_path / "custom.toml"
        config_file.write_text("[encoder]\nmax_depth = 1\n", encoding="utf-8")

        result = cli_runner.invoke(cli, ["-c", str(config_file), "encode"], input="[[1]]")
        assert result.exit_code == 1

    def test_invalid_config_file(self, cli_runner, tmp_path):
        """Test invalid configuration aborts."""
        config_file = tmp_path / "bad.toml"
        config_file.write_text("[encoder]\nmax_depth = -4\n", encoding="utf-8")

        result = cli_runner.invoke(cli, ["-c", str(config_file), "encode"], input="1")
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestDepthCommand:
    """Test the depth command."""

    def test_depth(self, cli_runner):
        """Test nesting depth of a JSON document."""
        result = cli_runner.invoke(cli, ["depth"], input='[[1], {"a": []}]')
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "3"


class TestConfigShow:
    """Test the config show command."""

    def test_show_key(self, cli_runner):
        """Test a single key is printed as JSON."""
        result = cli_runner.invoke(cli, ["config", "show", "--key", "encoder.max_depth"])
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "64"

    def test_show_toml(self, cli_runner):
        """Test TOML output has both sections."""
        result = cli_runner.invoke(cli, ["config", "show"])
        assert result.exit_code == 0, result.output
        assert "[encoder]" in result.output
        assert "[observability]" in result.output

    def test_show_json(self, cli_runner):
        """Test JSON output parses."""
        result = cli_runner.invoke(cli, ["config", "show", "--format", "json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["encoder"]["max_depth"] == 64

    def test_show_missing_key(self, cli_runner):
        """Test unknown keys are reported."""
        result = cli_runner.invoke(cli, ["config", "show", "--key", "encoder.nope"])
        assert result.exit_code == 1


class TestHelpers:
    """Test the JSON helpers."""

    def test_from_json(self):
        """Test base64 markers become bytes in keys and values."""
        assert from_json({"base64:aw==": ["base64:AA==", "x", 1]}, "base64:") == {
            b"k": [b"\x00", "x", 1]
        }

    def test_json_depth(self):
        """Test depth counting."""
        assert json_depth(1) == 0
        assert json_depth([]) == 1
        assert json_depth({"a": [[]]}) == 3
