"""
Error taxonomy for adapter operations.

These exceptions never leave a public adapter method: they are raised where
the failure is detected and turned into a failed ``Result`` at the boundary.

    ValidationError : input not in a type map; raised before any I/O
    TransportError : body serialisation or network failure
    ProtocolError : non-2xx status, broker error flag, unparsable body
    DataError : well-formed response missing an expected field
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    VALIDATION = "validation"
    TRANSPORT = "transport"
    PROTOCOL = "protocol"
    DATA = "data"


class AdapterError(Exception):
    kind: ErrorKind = ErrorKind.DATA

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AdapterError):
    kind = ErrorKind.VALIDATION


class TransportError(AdapterError):
    kind = ErrorKind.TRANSPORT


class ProtocolError(AdapterError):
    kind = ErrorKind.PROTOCOL

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


class DataError(AdapterError):
    kind = ErrorKind.DATA
