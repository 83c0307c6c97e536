"""Shared exceptions for the application.

Two families live here:

- Chunk planner errors are fatal configuration problems. They abort the
  request and surface as an internal error.
- Soft failures describe user input or upstream lookups that could not be
  resolved. The HTTP route turns them into plain-text 200 responses.
"""


class ConfigurationError(Exception):
    """Raised when required configuration is missing.

    This error indicates a configuration problem that prevents the
    aggregation from proceeding (e.g., YOUTUBE_API_KEY not set).
    """

    pass


class ChunkPlannerError(Exception):
    """Base class for batch planning failures.

    Planning errors are never retried. They mean the caller asked for a
    write that can not be split under the parameter ceiling.
    """

    pass


class PrecheckFailedError(ChunkPlannerError):
    """Raised when the reserved parameter count alone exceeds the ceiling."""

    def __init__(self, reserved_parameters: int, max_parameters: int):
        self.reserved_parameters = reserved_parameters
        self.max_parameters = max_parameters
        super().__init__(
            f"reserved_parameters cannot be more than {max_parameters} "
            f"(got {reserved_parameters})"
        )


class ItemTooLargeError(ChunkPlannerError):
    """Raised when a single item costs more parameters than the ceiling allows.

    Attributes:
        cost: Parameter cost of the offending item.
        max_parameters: Ceiling the item was checked against.
    """

    def __init__(self, cost: int, max_parameters: int):
        self.cost = cost
        self.max_parameters = max_parameters
        super().__init__(f"Item has too many parameters ({cost})")


class SoftFailureError(Exception):
    """Base class for failures reported to the caller as a plain sentence.

    Attributes:
        message: Human-readable sentence returned as the response body.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UserInputError(SoftFailureError):
    """Raised when the query input is missing or can not be parsed."""

    pass


class UpstreamUnavailableError(SoftFailureError):
    """Raised when the channel or its uploads playlist can not be looked up."""

    pass


class NoVideosFoundError(SoftFailureError):
    """Raised when the uploads playlist yields no videos."""

    pass
