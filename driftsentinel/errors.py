"""
DriftSentinel Errors

Exception hierarchy raised by the impact analysis engine and its loaders.
A resource missing from the topology graph is not an error.
"""

from typing import List, Optional


class DriftSentinelError(Exception):
    """Base class for all DriftSentinel errors"""


class ConfigurationError(DriftSentinelError):
    """Invalid engine parameters"""


class DriftEventValidationError(DriftSentinelError):
    """A drift event is missing required fields"""

    def __init__(self, message: str, event_id: Optional[str] = None):
        super().__init__(message)
        self.event_id = event_id


class InvalidAttributeError(DriftSentinelError):
    """An attribute map holds a value that is not JSON-shaped"""

    def __init__(self, path: str, value: object):
        super().__init__(
            f"Unsupported attribute value at '{path}': {type(value).__name__}"
        )
        self.path = path
        self.value = value


class GraphIntegrityError(DriftSentinelError):
    """Strict graph validation found duplicate nodes or dangling edges"""

    def __init__(self, problems: List[str]):
        super().__init__("Topology graph failed validation: " + "; ".join(problems))
        self.problems = problems


class ImpactInvariantError(DriftSentinelError):
    """An impact result broke one of the engine's invariants (a defect)"""


class BatchAnalysisError(DriftSentinelError):
    """The first event-level failure in a batch, which aborts the batch"""

    def __init__(self, event_id: str, index: int, cause: Exception):
        super().__init__(f"Failed to analyze event {event_id} (position {index}): {cause}")
        self.event_id = event_id
        self.index = index
        self.cause = cause


class DocumentLoadError(DriftSentinelError):
    """A graph or event document could not be read or parsed"""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Could not load {path}: {reason}")
        self.path = path
        self.reason = reason
