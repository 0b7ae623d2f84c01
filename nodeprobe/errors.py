"""Exception hierarchy for the nodeprobe package."""
from enum import Enum
from typing import Optional


class NodeProbeError(Exception):
    """Base class for all nodeprobe errors."""
    pass


class RequestValidationError(NodeProbeError):
    """Raised when a probe request is malformed (no hops, unknown role, bad body)."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ErrorType(str, Enum):
    """Transport failure categories reported by the hop executor."""
    AUTHENTICATION_FAILED = 'AUTHENTICATION_FAILED'
    CONNECTION_REFUSED = 'CONNECTION_REFUSED'
    CONNECTION_TIMEOUT = 'CONNECTION_TIMEOUT'
    HOST_NOT_FOUND = 'HOST_NOT_FOUND'
    TUNNELING_FAILED = 'TUNNELING_FAILED'
    COMMAND_EXECUTION_FAILED = 'COMMAND_EXECUTION_FAILED'
    VALIDATION_ERROR = 'VALIDATION_ERROR'
    UNKNOWN_ERROR = 'UNKNOWN_ERROR'


class TransportError(NodeProbeError):
    """Raised by the hop executor when login, tunneling or execution fails."""

    def __init__(
        self,
        error_type: ErrorType,
        message: str,
        host: Optional[str] = None,
        command: Optional[str] = None,
    ):
        self.error_type = error_type
        self.message = message
        self.host = host
        self.command = command
        super().__init__(self.message)


class PersistenceError(NodeProbeError):
    """Base for node store failures."""
    pass


class PersistenceLookupError(PersistenceError):
    """Raised when a node record cannot be resolved."""

    def __init__(self, node_id: int, detail: str = ""):
        self.node_id = node_id
        self.message = f"Could not look up node {node_id}"
        if detail:
            self.message += f": {detail}"
        super().__init__(self.message)


class NodeNotFoundError(PersistenceLookupError):
    def __init__(self, node_id: int):
        super().__init__(node_id, "no such node")


class PersistenceWriteError(PersistenceError):
    """Raised when the node store cannot persist a change."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.message = f"Node store {operation} failed"
        if detail:
            self.message += f": {detail}"
        super().__init__(self.message)
