"""Type definitions for huestatus.

TypedDict definitions for the bridge records printed by ``discover --json``.
"""

from typing import TypedDict


class BridgeInfo(TypedDict):
    """Bridge record in the discovery service's format, plus enrichment fields."""
    id: str | None
    internalipaddress: str
    port: int | None
    name: str | None
    modelid: str | None
    swversion: str | None
