"""Tests for the CLI main module."""

import json
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from xml_explorer.api import SAMPLE_BOOKSTORE_XML
from xml_explorer.cli.main import (
    CLIConfig,
    create_argument_parser,
    format_analysis,
    main,
)
from xml_explorer.shared import FormatterMode, PathMode


@pytest.fixture
def workdir():
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp)


@pytest.fixture
def store_file(workdir):
    path = workdir / "store.xml"
    path.write_text(SAMPLE_BOOKSTORE_XML, encoding="utf-8")
    return path


class TestCLIConfig:
    """Test CLI configuration management."""

    def test_default_config(self):
        """Test default configuration values."""
        config = CLIConfig()
        assert config.output_format == "text"
        assert config.explorer_config.name == "default"

    def test_config_from_file(self, workdir):
        """Test loading a preset and output format from file."""
        config_path = workdir / "cli.json"
        config_path.write_text(json.dumps({"preset": "compatibility", "output_format": "json"}))

        config = CLIConfig.from_file(config_path)
        assert config.output_format == "json"
        assert config.explorer_config.extraction.formatter_mode is FormatterMode.COMPAT

    def test_explorer_section_overrides_preset(self, workdir):
        """Test a full explorer configuration takes precedence."""
        config_path = workdir / "cli.json"
        config_path.write_text(json.dumps({
            "preset": "compatibility",
            "explorer": {"tree": {"path_mode": "POSITIONAL"}},
        }))

        config = CLIConfig.from_file(config_path)
        assert config.explorer_config.tree.path_mode is PathMode.POSITIONAL
        assert config.explorer_config.extraction.formatter_mode is FormatterMode.STRUCTURAL

    def test_config_from_nonexistent_file(self, capsys):
        """Test handling a missing config file."""
        config = CLIConfig.from_file(Path("nonexistent.json"))
        assert config.output_format == "text"
        assert "Could not load config file" in capsys.readouterr().err

    def test_invalid_explorer_section(self, workdir, capsys):
        """Test invalid explorer settings fall back with a warning."""
        config_path = workdir / "cli.json"
        config_path.write_text(json.dumps({"explorer": {"analysis": {"top_n": 0}}}))

        config = CLIConfig.from_file(config_path)
        assert config.explorer_config.analysis.top_n == 10
        assert "Invalid explorer configuration" in capsys.readouterr().err


class TestArgumentParser:
    """Test argument parsing."""

    def test_search_arguments(self):
        """Test search options."""
        args = create_argument_parser().parse_args(
            ["search", "f.xml", "term", "--case-sensitive", "--regex", "--in", "values"]
        )
        assert args.command == "search"
        assert args.case_sensitive is True
        assert args.whole_word is False
        assert args.regex is True
        assert args.search_in == "values"

    def test_extract_arguments(self):
        """Test extract options."""
        args = create_argument_parser().parse_args(
            ["extract", "f.xml", "fiction", "--basis", "attribute", "--flat"]
        )
        assert args.basis == "attribute"
        assert args.flat is True
        assert args.no_ancestors is False

    def test_extract_outputs_are_exclusive(self):
        """Test --output and --output-dir cannot be combined."""
        with pytest.raises(SystemExit):
            create_argument_parser().parse_args(
                ["extract", "f.xml", "x", "--output", "a.xml", "--output-dir", "out"]
            )


class TestCommands:
    """Test command handlers through main."""

    def test_no_command(self, capsys):
        """Test running without a command prints help."""
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_sample(self, capsys):
        """Test printing the sample document."""
        assert main(["sample"]) == 0
        assert "<bookstore>" in capsys.readouterr().out

    def test_tree(self, store_file, capsys):
        """Test printing the tree outline."""
        assert main(["tree", str(store_file)]) == 0
        out = capsys.readouterr().out
        assert "<bookstore>    [bookstore]" in out
        assert '<book category="fiction">    [bookstore/book]' in out
        assert "text: 1997    [bookstore/book/year/text()[0]]" in out

    def test_tree_positional(self, store_file, capsys):
        """Test positional paths in the outline."""
        assert main(["tree", str(store_file), "--positional"]) == 0
        assert "[bookstore/book[4]/price]" in capsys.readouterr().out

    def test_search(self, store_file, capsys):
        """Test searching values."""
        assert main(["search", str(store_file), "1997", "--in", "values"]) == 0
        out = capsys.readouterr().out
        assert "1 matching nodes, 1 distinct paths" in out
        assert "bookstore/book/year/text()[0]" in out

    def test_search_json(self, store_file, workdir, capsys):
        """Test JSON output selected through the config file."""
        config_path = workdir / "cli.json"
        config_path.write_text(json.dumps({"output_format": "json"}))

        assert main(["--config", str(config_path), "search", str(store_file), "fiction"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["match_count"] == 2

    def test_search_invalid_regex(self, store_file, capsys):
        """Test invalid patterns exit with an error."""
        assert main(["search", str(store_file), "[a-", "--regex"]) == 1
        assert "Invalid regular expression" in capsys.readouterr().err

    def test_analyze_text(self, store_file, capsys):
        """Test textual statistics."""
        assert main(["analyze", str(store_file), "--top", "2"]) == 0
        out = capsys.readouterr().out
        assert "Total elements:   21" in out
        assert "Maximum depth:    3" in out

    def test_analyze_json(self, store_file, capsys):
        """Test JSON statistics."""
        assert main(["analyze", str(store_file), "--format", "json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["total_elements"] == 21
        assert data["attribute_counts"] == {"category": 4, "lang": 4}

    def test_extract_stdout(self, store_file, capsys):
        """Test extraction printed to stdout."""
        assert main(["extract", str(store_file), "fiction", "--basis", "attribute"]) == 0
        captured = capsys.readouterr()
        assert captured.out.startswith('<extraction-results source="store.xml"')
        assert "2 elements matched" in captured.err

    def test_extract_output_dir(self, store_file, workdir, capsys):
        """Test saving under the download name."""
        out_dir = workdir / "out"
        assert main([
            "extract", str(store_file), "Learning", "--basis", "content",
            "--no-ancestors", "--output-dir", str(out_dir),
        ]) == 0

        saved = out_dir / "extracted-store.xml"
        assert saved.exists()
        content = saved.read_text(encoding="utf-8")
        assert '<title lang="en">Learning XML</title>' in content
        assert "<bookstore>" not in content

    def test_extract_output_file(self, store_file, workdir):
        """Test writing to an explicit file."""
        target = workdir / "result.xml"
        assert main(["extract", str(store_file), "price", "--output", str(target)]) == 0
        assert target.read_text(encoding="utf-8").count("<price>") == 1

    def test_extract_preview(self, store_file, capsys):
        """Test preview mode."""
        assert main(["extract", str(store_file), "technical", "--basis", "attribute", "--preview"]) == 0
        out = capsys.readouterr().out
        assert "2 matching elements" in out
        assert "bookstore/book" in out

    def test_malformed_file(self, workdir, capsys):
        """Test malformed documents exit with an error."""
        path = workdir / "bad.xml"
        path.write_text("<a><b></a>", encoding="utf-8")

        assert main(["tree", str(path)]) == 1
        err = capsys.readouterr().err
        assert "Error:" in err
        assert "at line 1" in err

    def test_wrong_extension(self, workdir, capsys):
        """Test non-XML files are refused."""
        path = workdir / "notes.txt"
        path.write_text("<a/>", encoding="utf-8")
        assert main(["analyze", str(path)]) == 1
        assert "expected .xml extension" in capsys.readouterr().err

    def test_config_file_sets_logging_level(self, workdir):
        """Test that the config file's logging level applies without -v/-q."""
        config_path = workdir / "cli.json"
        config_path.write_text(json.dumps({"explorer": {"global_": {"logging_level": "ERROR"}}}))

        with patch("xml_explorer.cli.main.configure_logging") as configure:
            assert main(["--config", str(config_path), "sample"]) == 0
        configure.assert_called_once_with("ERROR")

        with patch("xml_explorer.cli.main.configure_logging") as configure:
            assert main(["--config", str(config_path), "-v", "sample"]) == 0
        configure.assert_called_once_with("DEBUG")

    def test_keyboard_interrupt(self, capsys):
        """Test interrupt handling exit code."""
        with patch("xml_explorer.cli.main.cmd_sample", side_effect=KeyboardInterrupt):
            assert main(["sample"]) == 130
        assert "interrupted" in capsys.readouterr().err


def test_format_analysis():
    """Test text formatting of statistics."""
    text = format_analysis(
        {
            "total_elements": 3,
            "total_attributes": 1,
            "max_depth": 1,
            "attribute_counts": {"id": 1},
            "depth_counts": {"0": 1, "1": 2},
        },
        [("item", 2), ("shop", 1)],
    )
    lines = text.splitlines()
    assert lines[0] == "Total elements:   3"
    assert any(line.strip().startswith("item") for line in lines)
    assert "Attributes:" in lines
