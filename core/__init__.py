"""Core functionality for huestatus.

This package contains:
- client: BridgeClient for resilient Hue API v1 access
- discovery: Bridge discovery (Philips service, network scan, manual)
- auth: Link button authentication
- executor: Scene execution with validation, backup and retries
- scenes: Status scene provisioning
- config: Configuration loading and saving
- errors: Typed errors and the bridge error-code table
- log: Logging setup
"""
