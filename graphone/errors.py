"""Error kinds raised by the graphone package.

- InvalidInputError: a None node or edge weight was handed to a graph
- InvalidStateError: an edge was requested between nodes not in the graph,
  or a builder was asked to build twice
- MalformedRecordError: a corpus or gold-standard line failed to parse
- MalformedModelError: a trained model cannot be normalized or loaded
"""

from typing import Optional


class InvalidInputError(ValueError):
    """A required value was None."""


class InvalidStateError(RuntimeError):
    """Operation is not valid for the current graph or builder state."""


class MalformedRecordError(ValueError):
    """A corpus or gold-standard record could not be parsed."""

    def __init__(self, message: str, line: Optional[str] = None,
                 line_number: Optional[int] = None):
        self.line = line
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class MalformedModelError(ValueError):
    """The model contains weights that cannot be turned into probabilities."""
