"""Exceptions related to depot-build."""

__all__ = [
    "DepotException",
    "InputException",
    "NetworkError",
    "DecodeError",
    "CommandException",
    "ExecutionError",
    "NotFoundError",
    "TargetNotFoundError",
    "ImageTooLargeError",
]


class DepotException(Exception):
    """Generic base exception used for this library."""


class InputException(DepotException):
    """Raised when request values are not formatted as expected."""


class NetworkError(DepotException):
    """Raised when the depot release endpoint could not be reached."""


class DecodeError(DepotException):
    """Raised when a version payload or metadata file is malformed."""


class CommandException(DepotException):
    """Raised when there is a failure running a subcommand."""


class ExecutionError(CommandException):
    """Raised when the depot CLI exits non-zero or cannot be launched."""


class NotFoundError(DepotException):
    """Raised when an expected build output is missing."""


class TargetNotFoundError(NotFoundError):
    """Raised when a bake target name is not present in the bake output."""

    def __init__(self, target: str, valid_targets: list[str]) -> None:
        super().__init__(
            f"Target '{target}' not found; valid targets: {', '.join(valid_targets)}"
        )
        self.target = target
        self.valid_targets = valid_targets


class ImageTooLargeError(DepotException):
    """Raised when a built image exceeds the allowed size."""
