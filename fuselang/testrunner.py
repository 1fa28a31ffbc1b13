"""Discovery of test functions in source files and reporting of their results."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Sequence, TextIO

_RESET = "\x1b[0m"
_DIM = "\x1b[2m"
_GREEN = "\x1b[32m"
_BOLD_GREEN = "\x1b[1;32m"
_BOLD_RED = "\x1b[1;31m"

TEST_FILE_SUFFIX = "_test.fuse"


def _colorize(text: str, code: str, enabled: bool) -> str:
    return f"{code}{text}{_RESET}" if enabled else text


@dataclass
class RunResult:
    """Outcome of one test function; ``duration`` is in seconds."""

    name: str
    passed: bool
    exit_code: int = 0
    duration: float = 0.0
    output: str = ""


def find_test_functions(src: str) -> List[str]:
    """Names of ``fn test_*`` declarations, one per line, in source order."""
    names: List[str] = []
    for line in src.split("\n"):
        rest = line.strip()
        if rest.startswith("pub "):
            rest = rest[4:]
        if not rest.startswith("fn test_"):
            continue
        name = rest[3:]
        paren = name.find("(")
        if paren > 0:
            name = name[:paren]
        name = name.strip()
        if name:
            names.append(name)
    return names


def discover_test_files(directory: str) -> List[str]:
    """Paths of ``*_test.fuse`` files directly inside a directory, sorted by name."""
    return [
        os.path.join(directory, entry.name)
        for entry in sorted(os.scandir(directory), key=lambda e: e.name)
        if not entry.is_dir() and entry.name.endswith(TEST_FILE_SUFFIX)
    ]


def file_to_module_path(path: str) -> str:
    """Turn a file path into a dotted module path, dropping a ``.fuse`` suffix."""
    if path.endswith(".fuse"):
        path = path[: -len(".fuse")]
    return path.replace("/", ".").replace("\\", ".")


def format_duration(seconds: float) -> str:
    """Render a duration as microseconds, milliseconds or seconds."""
    nanos = round(seconds * 1_000_000_000)
    if nanos < 1_000_000:
        return f"{nanos // 1000}\u00b5s"
    if nanos < 1_000_000_000:
        return f"{nanos // 1_000_000}ms"
    return f"{nanos / 1_000_000_000:.2f}s"


def _write_output(out: TextIO, output: str) -> None:
    for line in output.strip().split("\n"):
        out.write(f"         {line}\n")


def print_report(
    out: TextIO, results: Sequence[RunResult], color: bool, verbose: bool
) -> None:
    """Write one line per test and a summary line."""
    if not results:
        out.write(_colorize("no tests found", _DIM, color) + "\n")
        return

    passed = failed = 0
    total_duration = 0.0
    for result in results:
        total_duration += result.duration
        timing = _colorize(f"({format_duration(result.duration)})", _DIM, color)
        if result.passed:
            passed += 1
            label = _colorize("  PASS  ", _BOLD_GREEN, color)
            show_output = verbose
        else:
            failed += 1
            label = _colorize("  FAIL  ", _BOLD_RED, color)
            show_output = True
        out.write(f"{label} {result.name} {timing}\n")
        if show_output and result.output:
            _write_output(out, result.output)

    out.write("\n")
    total = len(results)
    summary = f"{total} test" + ("" if total == 1 else "s") + ": "
    parts = []
    if passed:
        parts.append(_colorize(f"{passed} passed", _GREEN, color))
    if failed:
        parts.append(_colorize(f"{failed} failed", _BOLD_RED, color))
    summary += ", ".join(parts)
    timing = _colorize(f" ({format_duration(total_duration)} total)", _DIM, color)
    out.write(f"{summary}{timing}\n")