"""
LTSV CLI - Command-line interface for Labeled Tab-Separated Values files.

Commands:
  ltsv validate - Check every line of a file against the LTSV grammar
  ltsv inspect  - Show record count and label statistics
  ltsv cut      - Print selected labels from each record
  ltsv fmt      - Re-serialize a file (normalizes CRLF, blank lines)
  ltsv convert  - Convert to/from JSON Lines, JSON, CSV
  ltsv identify - Quick check if a file looks like LTSV
  ltsv view     - View a file in the terminal (needs 'ltsv[tui]')

Use '-' as PATH to read from stdin.
"""

from __future__ import annotations

import argparse
import sys
from collections import Counter
from pathlib import Path


def _open_input(path: str):
    """Binary input for PATH, or stdin for '-'."""
    if path == "-":
        return sys.stdin.buffer
    file_path = Path(path)
    if not file_path.is_file():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    return open(file_path, "rb")


def _reject_traversal(output: str) -> None:
    if ".." in Path(output).parts:
        print("Error: Output path must not contain '..' (path traversal)", file=sys.stderr)
        sys.exit(1)


def cmd_validate(args: argparse.Namespace) -> None:
    """Validate a file. With --all, report every bad line instead of the first."""
    from ltsv.errors import LTSVError
    from ltsv.reader import LTSVReader

    path = args.path
    handle = _open_input(path)
    try:
        reader = LTSVReader(handle)
        if args.all:
            count = sum(1 for _ in reader.iter_records(skip_invalid=True))
            errors = reader.errors
        else:
            count = len(reader.read_all())
            errors = []
    except LTSVError as e:
        print(f"FAIL: {path}: {e}")
        sys.exit(1)
    finally:
        if handle is not sys.stdin.buffer:
            handle.close()

    if errors:
        for e in errors:
            print(f"FAIL: {path}: {e}")
        print(f"{len(errors)} bad line(s), {count} good record(s)")
        sys.exit(1)
    print(f"OK: {path} is valid LTSV ({count} records)")


def cmd_inspect(args: argparse.Namespace) -> None:
    """Show record count and how often each label appears."""
    from ltsv.reader import LTSVReader

    handle = _open_input(args.path)
    try:
        reader = LTSVReader(handle)
        counts: Counter[bytes] = Counter()
        records = 0
        for record in reader.iter_records(skip_invalid=args.skip_invalid):
            records += 1
            counts.update(record.keys())
    finally:
        if handle is not sys.stdin.buffer:
            handle.close()

    print(f"RECORDS: {records}")
    print()
    print("LABELS:")
    for label, n in counts.most_common():
        name = label.decode("utf-8", errors="replace")
        print(f"  {name:24s}  {n:>8d}  {100.0 * n / records:5.1f}%")
    if reader.errors:
        print()
        print(f"SKIPPED: {len(reader.errors)} bad line(s)")


def cmd_cut(args: argparse.Namespace) -> None:
    """Print the given labels of each record, as LTSV or tab-separated values."""
    from ltsv.reader import LTSVReader
    from ltsv.writer import LTSVWriter

    labels = [label.encode("utf-8") for label in args.labels]
    out = sys.stdout.buffer
    handle = _open_input(args.path)
    try:
        for record in LTSVReader(handle).iter_records(skip_invalid=args.skip_invalid):
            if args.values:
                out.write(b"\t".join(record.get(label, b"") for label in labels) + b"\n")
            else:
                picked = {label: record[label] for label in labels if label in record}
                LTSVWriter.dump_record(picked, out)
    finally:
        if handle is not sys.stdin.buffer:
            handle.close()
    out.flush()


def cmd_fmt(args: argparse.Namespace) -> None:
    """Parse and re-serialize. Output is canonical: LF endings, no blank lines.

    With -o the output replaces the target atomically once the whole input
    has parsed, so -o may name the input file itself.
    """
    import os
    import stat

    from ltsv.reader import LTSVReader
    from ltsv.stream import LTSVStreamWriter
    from ltsv.writer import LTSVWriter

    if args.output:
        _reject_traversal(args.output)

    handle = _open_input(args.path)
    try:
        reader = LTSVReader(handle)
        records = reader.iter_records(skip_invalid=args.skip_invalid)
        if args.output:
            mode = 0o644
            if os.path.exists(args.output):
                mode = stat.S_IMODE(os.stat(args.output).st_mode)
            nbytes = LTSVWriter.write(records, args.output, mode=mode)
        else:
            with LTSVStreamWriter(sink=sys.stdout.buffer) as writer:
                writer.write_records(records)
    finally:
        if handle is not sys.stdin.buffer:
            handle.close()
    for e in reader.errors:
        print(f"Warning: Skipping bad line: {e}", file=sys.stderr)
    if args.output:
        print(f"Formatted {args.path} -> {args.output} ({nbytes} bytes)")


def _infer_format(filename: str) -> str | None:
    """Infer format from file extension."""
    ext_map = {
        ".json": "json", ".jsonl": "jsonl", ".ndjson": "jsonl",
        ".csv": "csv", ".ltsv": "ltsv",
    }
    return ext_map.get(Path(filename).suffix.lower())


def cmd_convert(args: argparse.Namespace) -> None:
    """Convert to/from LTSV."""
    from ltsv.converters import convert_to, convert_from
    from ltsv.reader import LTSVReader
    from ltsv.spec import MAX_FILE_SIZE

    known_formats = {"json", "jsonl", "ndjson", "csv"}

    if args.format_or_input in known_formats and args.input:
        fmt = args.format_or_input
        input_file = args.input
    else:
        input_file = args.format_or_input
        inferred = _infer_format(input_file)
        inferred_from_output = _infer_format(args.output) if args.output else None
        resolved = (
            inferred_from_output
            if args.direction == "to" and inferred_from_output and inferred_from_output != "ltsv"
            else inferred
        )
        if not resolved or resolved == "ltsv":
            print("Error: Cannot infer format. Specify explicitly:", file=sys.stderr)
            print(f"  ltsv convert {args.direction} <json|jsonl|csv> {input_file}", file=sys.stderr)
            sys.exit(1)
        fmt = resolved

    if args.direction == "from":
        input_path = Path(input_file)
        if not input_path.is_file():
            print(f"Error: File not found: {input_file}", file=sys.stderr)
            sys.exit(1)
        file_size = input_path.stat().st_size
        if file_size > MAX_FILE_SIZE:
            print(f"Error: File size {file_size} exceeds maximum {MAX_FILE_SIZE} bytes", file=sys.stderr)
            sys.exit(1)
        try:
            doc = convert_from(input_path.read_text(encoding="utf-8"), fmt)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        output = args.output or input_path.stem + ".ltsv"
        _reject_traversal(output)
        nbytes = doc.write(output)
        print(f"Converted {input_file} -> {output} ({nbytes} bytes)")

    elif args.direction == "to":
        try:
            doc = LTSVReader.read(input_file)
        except FileNotFoundError:
            print(f"Error: File not found: {input_file}", file=sys.stderr)
            sys.exit(1)
        except ValueError as e:
            print(f"Error: {input_file}: {e}", file=sys.stderr)
            sys.exit(1)
        result = convert_to(doc, fmt)
        if args.output:
            _reject_traversal(args.output)
            Path(args.output).write_text(result, encoding="utf-8")
            print(f"Converted {input_file} -> {args.output}")
        else:
            print(result, end="" if result.endswith("\n") else "\n")


def cmd_identify(args: argparse.Namespace) -> None:
    """Quick check if a file looks like LTSV."""
    from ltsv.reader import LTSVReader

    is_ltsv = LTSVReader.is_ltsv(args.path)
    if is_ltsv:
        print(f"{args.path}: LTSV file")
    else:
        print(f"{args.path}: not LTSV")
    sys.exit(0 if is_ltsv else 1)


def cmd_view(args: argparse.Namespace) -> None:
    """View an .ltsv file in the terminal."""
    try:
        from ltsv.tui.viewer import run_viewer
    except ImportError:
        print(
            "TUI viewer requires the 'textual' package.\n"
            "Install it with: pip install \"ltsv[tui]\"",
            file=sys.stderr,
        )
        sys.exit(1)
    run_viewer(args.path)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ltsv",
        description="Read, validate and convert Labeled Tab-Separated Values files.",
    )
    from ltsv import __version__
    parser.add_argument("--version", action="version", version=f"ltsv {__version__}")
    sub = parser.add_subparsers(dest="command")

    # validate
    p_validate = sub.add_parser("validate", help="Validate an .ltsv file")
    p_validate.add_argument("path", help="Path to .ltsv file ('-' for stdin)")
    p_validate.add_argument("--all", action="store_true", help="Report every bad line, not just the first")

    # inspect
    p_inspect = sub.add_parser("inspect", help="Show record and label statistics")
    p_inspect.add_argument("path", help="Path to .ltsv file ('-' for stdin)")
    p_inspect.add_argument("--skip-invalid", action="store_true", help="Skip malformed lines")

    # cut
    p_cut = sub.add_parser("cut", help="Print selected labels from each record")
    p_cut.add_argument("path", help="Path to .ltsv file ('-' for stdin)")
    p_cut.add_argument("labels", nargs="+", help="Labels to keep")
    p_cut.add_argument("-v", "--values", action="store_true", help="Print bare tab-separated values")
    p_cut.add_argument("--skip-invalid", action="store_true", help="Skip malformed lines")

    # fmt
    p_fmt = sub.add_parser("fmt", help="Re-serialize an .ltsv file")
    p_fmt.add_argument("path", help="Path to .ltsv file ('-' for stdin)")
    p_fmt.add_argument("-o", "--output", help="Output file path (default: stdout)")
    p_fmt.add_argument("--skip-invalid", action="store_true", help="Drop malformed lines instead of failing")

    # convert
    p_convert = sub.add_parser("convert", help="Convert to/from LTSV")
    p_convert.add_argument("direction", choices=["to", "from"], help="Conversion direction")
    p_convert.add_argument("format_or_input", help="Format (json, jsonl, csv) or input file")
    p_convert.add_argument("input", nargs="?", default=None, help="Input file path")
    p_convert.add_argument("-o", "--output", help="Output file path")

    # identify
    p_identify = sub.add_parser("identify", help="Quick check if a file is LTSV")
    p_identify.add_argument("path", help="Path to file")

    # view
    p_view = sub.add_parser("view", help="View an .ltsv file (TUI)")
    p_view.add_argument("path", help="Path to .ltsv file")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        print("LTSV - Labeled Tab-Separated Values\n")
        print("Usage:")
        print("  ltsv validate access.ltsv")
        print("  ltsv inspect access.ltsv")
        print("  ltsv cut access.ltsv host status")
        print("  ltsv fmt access.ltsv -o clean.ltsv")
        print("  ltsv convert to jsonl access.ltsv -o access.jsonl")
        print("  ltsv convert from csv data.csv -o data.ltsv")
        print("  ltsv view access.ltsv")
        print("  ltsv identify access.ltsv")
        print()
        print("Pipe from stdin:")
        print("  tail -f access.ltsv | ltsv cut - host status")
        print()
        print("Run 'ltsv <command> --help' for details on any command.")
        sys.exit(0)

    commands = {
        "validate": cmd_validate,
        "inspect": cmd_inspect,
        "cut": cmd_cut,
        "fmt": cmd_fmt,
        "convert": cmd_convert,
        "identify": cmd_identify,
        "view": cmd_view,
    }

    try:
        commands[args.command](args)
    except ValueError as e:
        # LTSVError and size limits: safe to show
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
