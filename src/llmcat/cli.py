"""
CLI entrypoint for llmcat.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from colorama import Fore, Style, just_fix_windows_console

from . import __version__
from .core import (
    FilterConfig,
    LlmcatError,
    OutputError,
    collect_files,
    format_skip_report,
    load_extra_patterns,
    resolve_ignore_rules,
    validate_root,
)
from .render import OutputFormat, render, sort_entries

logger = logging.getLogger("llmcat")

# Options whose value is the following token.
VALUE_OPTIONS: FrozenSet[str] = frozenset({
    "-s", "--max-size-kb",
    "--include",
    "--exclude",
    "-g", "--ignore-file",
    "--config",
    "-xe", "--exclude-extension",
    "-p", "--prepend-path",
    "-o", "--out",
})


# Logging
class _ColorFormatter(logging.Formatter):
    COLORS: Dict[int, str] = {
        logging.DEBUG: Style.DIM,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def __init__(self, use_color: bool) -> None:
        super().__init__("[llmcat] %(message)s")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        color = self.COLORS.get(record.levelno) if self.use_color else None
        return f"{color}{msg}{Style.RESET_ALL}" if color else msg


def configure_logging(verbose: bool = False, stream=None) -> None:
    """Send llmcat diagnostics to stderr, never to the primary output."""
    stream = stream or sys.stderr
    just_fix_windows_console()
    handler = logging.StreamHandler(stream)
    isatty = getattr(stream, "isatty", None)
    handler.setFormatter(_ColorFormatter(use_color=bool(isatty and isatty())))
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False


# Argument handling
def classify_args(
    argv: Sequence[str],
    value_options: FrozenSet[str] = VALUE_OPTIONS,
) -> Tuple[List[str], List[str]]:
    """Split *argv* into flag tokens and positional tokens.

    Flags may come before or after the directory argument. A known value
    option written without ``=value`` takes the next token as its value.
    Everything after ``--`` is positional.
    """
    flags: List[str] = []
    positionals: List[str] = []
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--":
            positionals.extend(argv[i + 1:])
            break
        if not arg.startswith("-") or arg == "-":
            positionals.append(arg)
        else:
            flags.append(arg)
            if arg in value_options and i + 1 < len(argv):
                flags.append(argv[i + 1])
                i += 1
        i += 1
    return flags, positionals


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="llmcat",
        usage="%(prog)s [options] [directory]",
        allow_abbrev=False,
        description=(
            "Combine directory contents into a single paste for LLMs, "
            "using .gitignore-style exclusions."
        ),
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    fmt = p.add_mutually_exclusive_group()
    fmt.add_argument(
        "-m", "--format-markdown", action="store_true", help="Format as Markdown code blocks"
    )
    fmt.add_argument("-c", "--format-xml", action="store_true", help="Format as XML documents")

    filt = p.add_argument_group("Filtering")
    filt.add_argument(
        "-s", "--max-size-kb", type=int, default=25, metavar="KB",
        help="Max file size in kilobytes (default: 25)",
    )
    filt.add_argument(
        "--include", action="append", default=[], metavar="GLOB",
        help="Only include matching files; replaces the default extension list. Repeatable",
    )
    filt.add_argument(
        "--exclude", action="append", default=[], metavar="GLOB",
        help="Exclude matching files and directories. Repeatable",
    )
    filt.add_argument(
        "-g", "--ignore-file", type=Path, metavar="PATH",
        help="Path to a .gitignore-style file (default: <directory>/.gitignore if it exists)",
    )
    filt.add_argument(
        "--config", type=Path, metavar="PATH",
        help="Path to a file with extra ignore patterns (one per line)",
    )
    filt.add_argument(
        "-x", "--source-only", action="store_true",
        help="Only include files with recognized source code extensions",
    )
    filt.add_argument(
        "-xe", "--exclude-extension", action="append", default=[], metavar="EXT",
        help="Extra file extension to exclude (e.g. .log). Repeatable",
    )

    out = p.add_argument_group("Output")
    out.add_argument(
        "-p", "--prepend-path", metavar="PREFIX",
        help="Prepend a path to all filenames in the output",
    )
    out.add_argument(
        "-o", "--out", type=Path, metavar="FILE",
        help="Write output to FILE instead of stdout",
    )
    out.add_argument(
        "-v", "--verbose", action="store_true",
        help="Verbose output: list every file that was copied",
    )
    return p


def parse_args(argv: Sequence[str]) -> Tuple[argparse.Namespace, Path]:
    parser = build_parser()
    flags, positionals = classify_args(argv)
    ns = parser.parse_args(flags)
    if ns.max_size_kb < 0:
        parser.error("--max-size-kb must not be negative")
    if len(positionals) > 1:
        parser.error("only one directory path argument is allowed")
    root = Path(positionals[0]) if positionals else Path(".")
    return ns, root


def _output_format(ns: argparse.Namespace) -> OutputFormat:
    if ns.format_xml:
        return OutputFormat.XML
    if ns.format_markdown:
        return OutputFormat.MARKDOWN
    return OutputFormat.TEXT


def write_output(data: bytes, out_path: Optional[Path] = None) -> None:
    if out_path is None:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return
    try:
        out_path = out_path.resolve()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(data)
    except (OSError, RuntimeError) as e:
        raise OutputError(f"Could not write to output file '{out_path}': {e}")


def run(ns: argparse.Namespace, root: Path) -> int:
    root = validate_root(root)

    extra_patterns: List[str] = []
    if ns.config:
        extra_patterns = load_extra_patterns(ns.config.resolve())
        logger.debug("Loaded extra patterns from %s", ns.config)

    config = FilterConfig.build(
        max_size_kb=ns.max_size_kb,
        include_patterns=ns.include,
        exclude_patterns=ns.exclude,
        excluded_extensions=ns.exclude_extension,
        source_only=ns.source_only,
        ignore_rules=resolve_ignore_rules(root, ns.ignore_file, extra_patterns),
        prepend_path=ns.prepend_path,
    )

    logger.debug("Scanning %s …", root)
    result = collect_files(root, config)

    for line in format_skip_report(result.skipped):
        logger.info(line)

    if not result.files:
        logger.info("No files matched. No output generated.")
        return 0

    data = render(result.files, _output_format(ns), config.prepend_path)

    if ns.verbose:
        logger.info("Copied %d files:", len(result.files))
        for entry in sort_entries(result.files):
            logger.info("- %s", entry.path)

    write_output(data, ns.out)
    target = f" → {ns.out}" if ns.out else ""
    logger.info("✓ Ingested %d files%s.", len(result.files), target)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, scan, render and emit. Returns the exit status."""
    if argv is None:
        argv = sys.argv[1:]
    try:
        ns, root = parse_args(list(argv))
        configure_logging(ns.verbose)
        return run(ns, root)
    except LlmcatError as e:
        logger.error("Error: %s", e)
        return 1
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
