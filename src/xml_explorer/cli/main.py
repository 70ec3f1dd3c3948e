"""Main CLI entry point for the xml-explorer command-line tool.

Provides command-line access to tree browsing, search, structural analysis
and extraction over a single XML document per invocation.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from xml_explorer.api import SAMPLE_BOOKSTORE_XML, XMLExplorer
from xml_explorer.extraction import ExtractionBasis, ExtractionQuery
from xml_explorer.search import SearchOptions, SearchScope
from xml_explorer.shared import (
    ConfigValidationError,
    ExplorerConfig,
    OperationResult,
    PathMode,
    configure_logging,
    get_logger,
)

VALUE_PREVIEW_LENGTH = 60  # Max characters of a text value shown in tree output

logger = get_logger(__name__, None, "cli")


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.explorer_config = ExplorerConfig.default()
        self.output_format = "text"

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        Recognized keys are ``preset`` (``default``, ``strict_paths`` or
        ``compatibility``), ``explorer`` (a full ``ExplorerConfig`` dict,
        taking precedence over the preset) and ``output_format``.
        """
        config = cls()
        try:
            with config_path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            print(f"Warning: Could not load config file: {e}", file=sys.stderr)
            return config

        preset = data.get("preset")
        if preset == "strict_paths":
            config.explorer_config = ExplorerConfig.strict_paths()
        elif preset == "compatibility":
            config.explorer_config = ExplorerConfig.compatibility()

        if "explorer" in data:
            try:
                config.explorer_config = ExplorerConfig.from_dict(data["explorer"])
            except ConfigValidationError as e:
                print(f"Warning: Invalid explorer configuration: {e}", file=sys.stderr)

        config.output_format = data.get("output_format", config.output_format)
        return config


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="xml-explorer",
        description="Explore, search, analyze and extract from XML documents"
    )

    parser.add_argument("--version", action="version", version="0.1.0")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Tree command
    tree_parser = subparsers.add_parser("tree", help="Print the document tree with paths")
    tree_parser.add_argument("file", type=Path, help="XML file to load")
    tree_parser.add_argument(
        "--positional",
        action="store_true",
        help="Disambiguate same-tagged siblings with [n] ordinals"
    )

    # Search command
    search_parser = subparsers.add_parser("search", help="Search node names, attributes and values")
    search_parser.add_argument("file", type=Path, help="XML file to load")
    search_parser.add_argument("term", help="Search term or regular expression")
    search_parser.add_argument(
        "--case-sensitive",
        action="store_true",
        help="Match case exactly"
    )
    search_parser.add_argument(
        "--whole-word",
        action="store_true",
        help="Only match whole words"
    )
    search_parser.add_argument(
        "--regex",
        action="store_true",
        help="Treat the term as a regular expression"
    )
    search_parser.add_argument(
        "--in",
        dest="search_in",
        choices=[scope.value for scope in SearchScope],
        default=SearchScope.ALL.value,
        help="Which parts of nodes to search (default: all)"
    )
    search_parser.add_argument(
        "--positional",
        action="store_true",
        help="Report positional paths"
    )

    # Analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Show structural statistics")
    analyze_parser.add_argument("file", type=Path, help="XML file to load")
    analyze_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default=None,
        help="Output format (default: text)"
    )
    analyze_parser.add_argument(
        "--top",
        type=int,
        default=None,
        help="Number of most frequent elements to list"
    )

    # Extract command
    extract_parser = subparsers.add_parser("extract", help="Extract matching elements")
    extract_parser.add_argument("file", type=Path, help="XML file to load")
    extract_parser.add_argument("term", help="Term to match")
    extract_parser.add_argument(
        "--basis",
        choices=[basis.value for basis in ExtractionBasis],
        default=ExtractionBasis.ELEMENT_NAME.value,
        help="What the term is matched against (default: element)"
    )
    extract_parser.add_argument(
        "--element",
        help="Only consider elements with this tag name (element basis)"
    )
    extract_parser.add_argument(
        "--attribute",
        help="Only consider this attribute (attribute basis)"
    )
    extract_parser.add_argument(
        "--no-ancestors",
        action="store_true",
        help="Do not wrap extracted elements in their ancestors"
    )
    extract_parser.add_argument(
        "--flat",
        action="store_true",
        help="Wrap in the immediate parent only instead of the full ancestor chain"
    )
    output_group = extract_parser.add_mutually_exclusive_group()
    output_group.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    output_group.add_argument(
        "--output-dir",
        type=Path,
        help="Directory to save the result under its download name"
    )
    extract_parser.add_argument(
        "--preview",
        action="store_true",
        help="Only report what would be extracted"
    )

    # Sample command
    subparsers.add_parser("sample", help="Print the bundled sample document")

    # Global options
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path (JSON)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def report_failure(result: OperationResult) -> int:
    """Print a failed result's error to stderr and return the exit code."""
    message = result.error.message if result.error else "Operation failed"
    print(f"Error: {message}", file=sys.stderr)
    if result.error is not None:
        line = result.error.details.get("line")
        column = result.error.details.get("column")
        if line is not None:
            print(f"   at line {line}, column {column}", file=sys.stderr)
    return 1


def _load(args: argparse.Namespace, config: ExplorerConfig) -> Optional[XMLExplorer]:
    explorer = XMLExplorer(config)
    result = explorer.load_file(args.file)
    if not result.success:
        report_failure(result)
        return None
    if not args.quiet:
        for warning in result.diagnostics:
            print(f"Warning: {warning.message}", file=sys.stderr)
    return explorer


def _with_path_mode(config: ExplorerConfig, positional: bool) -> ExplorerConfig:
    if not positional:
        return config
    return config.override(tree__path_mode=PathMode.POSITIONAL)


def format_tree(explorer: XMLExplorer) -> str:
    """Render the loaded tree as an indented outline with node paths."""
    tree = explorer.tree
    lines = []
    for node, depth in tree.walk():
        pad = "  " * depth
        path = tree.path_of(node)
        if node.is_element:
            attributes = " ".join(f'{name}="{value}"' for name, value in node.attributes.items())
            label = f"<{node.name}{' ' + attributes if attributes else ''}>"
        else:
            value = node.value.strip().replace("\n", " ")
            if len(value) > VALUE_PREVIEW_LENGTH:
                value = value[:VALUE_PREVIEW_LENGTH] + "..."
            label = f"{node.kind.value}: {value}"
        lines.append(f"{pad}{label}    [{path}]")
    return "\n".join(lines)


def format_analysis(result_dict: Dict[str, Any], top: List[Any]) -> str:
    """Format analysis statistics as text."""
    lines = [
        f"Total elements:   {result_dict['total_elements']}",
        f"Total attributes: {result_dict['total_attributes']}",
        f"Maximum depth:    {result_dict['max_depth']}",
        "-" * 40,
        "Most frequent elements:",
    ]
    for name, count in top:
        lines.append(f"   {name:<24} {count}")

    if result_dict["attribute_counts"]:
        lines.append("Attributes:")
        for name, count in result_dict["attribute_counts"].items():
            lines.append(f"   {name:<24} {count}")

    lines.append("Elements per depth:")
    for level, count in result_dict["depth_counts"].items():
        lines.append(f"   depth {level:<18} {count}")
    return "\n".join(lines)


def cmd_tree(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle tree command."""
    explorer = _load(args, _with_path_mode(config.explorer_config, args.positional))
    if explorer is None:
        return 1
    print(format_tree(explorer))
    return 0


def cmd_search(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle search command."""
    explorer = _load(args, _with_path_mode(config.explorer_config, args.positional))
    if explorer is None:
        return 1

    options = SearchOptions(
        case_sensitive=args.case_sensitive,
        whole_word=args.whole_word,
        search_in=args.search_in,
        use_regex=args.regex,
    )
    result = explorer.search(args.term, options)
    if not result.success:
        return report_failure(result)

    if config.output_format == "json":
        print(json.dumps(result.to_dict(), indent=2))
        return 0

    if not args.quiet:
        print(f"{result.match_count} matching nodes, {len(result.matched_paths)} distinct paths")
    for path in sorted(result.matched_paths):
        print(path)
    return 0


def cmd_analyze(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle analyze command."""
    explorer = _load(args, config.explorer_config)
    if explorer is None:
        return 1

    result = explorer.analyze()
    if not result.success:
        return report_failure(result)

    output_format = args.format or config.output_format
    if output_format == "json":
        print(json.dumps(result.to_dict(), indent=2))
    else:
        top = args.top if args.top is not None else config.explorer_config.analysis.top_n
        print(format_analysis(result.to_dict(), result.top_elements(top)))
    return 0


def cmd_extract(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle extract command."""
    explorer = _load(args, config.explorer_config)
    if explorer is None:
        return 1

    query = ExtractionQuery(
        term=args.term,
        basis=args.basis,
        specific_element=args.element,
        specific_attribute=args.attribute,
        include_ancestors=not args.no_ancestors,
        preserve_structure=not args.flat,
    )

    if args.preview:
        preview = explorer.preview(query)
        if not preview.success:
            return report_failure(preview)
        if config.output_format == "json":
            print(json.dumps(preview.to_dict(), indent=2))
        else:
            print(f"{preview.match_count} matching elements")
            for path in preview.sample_paths:
                print(f"   {path}")
        return 0

    result = explorer.extract(query)
    if not result.success:
        return report_failure(result)

    try:
        if args.output_dir:
            target = explorer.save_extraction(result, args.output_dir)
            print(f"Extraction written to {target}", file=sys.stderr)
        elif args.output:
            args.output.write_text(result.xml_text, encoding="utf-8")
            print(f"Extraction written to {args.output}", file=sys.stderr)
        else:
            print(result.xml_text)
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(f"{result.matched_count} elements matched", file=sys.stderr)
    return 0


def cmd_sample(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle sample command."""
    print(SAMPLE_BOOKSTORE_XML)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    config = CLIConfig()
    if args.config:
        config = CLIConfig.from_file(args.config)

    # Set up logging verbosity; a configuration file sets the default level
    if args.verbose:
        configure_logging("DEBUG")
    elif args.quiet:
        configure_logging("ERROR")
    elif args.config:
        configure_logging(config.explorer_config.global_.logging_level)
    else:
        configure_logging("WARNING")

    handlers = {
        "tree": cmd_tree,
        "search": cmd_search,
        "analyze": cmd_analyze,
        "extract": cmd_extract,
        "sample": cmd_sample,
    }

    # Route to appropriate command handler
    try:
        handler = handlers.get(args.command)
        if handler is None:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1
        logger.debug("Running command", extra={"command": args.command})
        return handler(args, config)

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
