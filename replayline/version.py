"""
Replayline version constants.

This module defines version constants for the Replayline library and the
session schema it persists. These are used to track compatibility and enable
backward-compatible loading of older stored sessions.
"""

# Library version (matches pyproject.toml)
REPLAYLINE_VERSION = "0.1.0"

# Schema version for stored sessions
# Increment when the stored format changes in a breaking way
SCHEMA_VERSION = "session_v1"

# Default values for backward compatibility when loading older rows
DEFAULT_REPLAYLINE_VERSION = "0.1.0"
DEFAULT_SCHEMA_VERSION = "session_v1"
