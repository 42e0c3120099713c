"""CLI command modules.

This package contains:
- control: Status commands (success, failure, test-scene)
- setup: Setup, discovery and help commands, plus the coloured click group
- status: Diagnostic commands (status, validate)
"""
