"""Data models and utility functions.

This package contains:
- bridge: Lights, scenes, groups and bridge configuration parsed from API JSON
- discovery: Discovery candidates and outcomes
- execution: Execution strategies, options, snapshots and metrics
- types: TypedDict records for raw JSON
- utils: Helpers shared by the CLI commands
"""
