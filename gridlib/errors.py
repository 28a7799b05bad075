class GridError(Exception):
    """Base class for all grid rendering errors."""


class DimensionMismatch(GridError):
    """Frame shape does not match the grid the renderer is locked to."""


class InvalidCellValue(GridError):
    """Frame contains a value other than 0 or 1."""


class PoolExhausted(GridError):
    """No free identity is left to place on the grid."""


class InitializationError(GridError):
    """Renderer could not be set up (surface size, monitor, double init)."""


class ConfigError(GridError):
    pass


class ActuatorCommandFailure(GridError):
    """A single actuator command failed. Recorded, never fatal."""

    def __init__(self, identity, command, cause=None):
        self.identity = identity
        self.command = command
        self.cause = cause
        message = f"{command} failed for {identity}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
