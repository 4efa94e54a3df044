from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Standard netsim error codes."""

    E001 = "E001"  # Lookup: device/connection/interface/packet not found
    E002 = "E002"  # Validation: invalid argument
    E003 = "E003"  # Conflict: simulation state conflict
    E010 = "E010"  # Internal: internal error


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.E001: "Not found",
    ErrorCode.E002: "Validation error",
    ErrorCode.E003: "State conflict",
    ErrorCode.E010: "Internal server error",
}
