"""CLI output assertion helpers.

Exit codes carry most of the meaning in zlaunch's CLI, so these helpers check
them first and only fall back to loose substring or regex checks on output.

Available helpers:
- assert_command_success/failed: Exit code validation
- assert_output_matches/contains: Pattern and substring matching
- assert_error_message: Error line and optional hint detection
"""

import re

from click.testing import Result


def _output(result: Result) -> str:
    # click >= 8.2 always captures stderr separately; combine for matching
    stderr = ""
    try:
        stderr = result.stderr
    except ValueError:
        pass
    if stderr and stderr not in result.output:
        return result.output + stderr
    return result.output


def assert_command_success(result: Result, *, context: str = "") -> None:
    """Assert that a CLI command exited with code 0.

    Example:
        result = runner.invoke(cli, ["theme"])
        assert_command_success(result, context="zlaunch theme")
    """
    ctx = f" ({context})" if context else ""
    assert result.exit_code == 0, (
        f"Command failed{ctx}:\n"
        f"  Exit code: {result.exit_code}\n"
        f"  Output: {_output(result)[:500]}\n"
        f"  Exception: {result.exception!r}"
    )


def assert_command_failed(
    result: Result,
    *,
    expected_code: int = 1,
    context: str = "",
) -> None:
    """Assert that a CLI command failed with the expected exit code."""
    ctx = f" ({context})" if context else ""
    assert result.exit_code == expected_code, (
        f"Expected exit code {expected_code}{ctx}, got {result.exit_code}:\n"
        f"  Output: {_output(result)[:500]}"
    )


def assert_output_matches(result: Result, pattern: str, *, flags: int = re.IGNORECASE) -> None:
    """Assert that output matches a regex pattern."""
    output = _output(result)
    assert re.search(pattern, output, flags), (
        f"Pattern {pattern!r} not found in output:\n{output[:500]}"
    )


def assert_output_contains(result: Result, *substrings: str) -> None:
    """Assert that output contains all specified substrings."""
    output = _output(result)
    missing = [s for s in substrings if s not in output]
    assert not missing, f"Missing {missing!r} in output:\n{output[:500]}"


def assert_error_message(result: Result, *, hint: str | None = None) -> None:
    """Assert that output carries an error line, and optionally a hint."""
    output = _output(result)
    assert "Error" in output, f"No error message in output:\n{output[:500]}"
    if hint is not None:
        assert f"Hint: {hint}" in output or hint in output, (
            f"Hint {hint!r} not found in output:\n{output[:500]}"
        )
