"""Test helper utilities for the zlaunch test suite."""

from tests.helpers.cli_assertions import (
    assert_command_failed,
    assert_command_success,
    assert_error_message,
    assert_output_contains,
    assert_output_matches,
)

__all__ = [
    "assert_command_success",
    "assert_command_failed",
    "assert_output_matches",
    "assert_output_contains",
    "assert_error_message",
]
