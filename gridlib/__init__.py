from gridlib.errors import (
    GridError,
    DimensionMismatch,
    InvalidCellValue,
    PoolExhausted,
    ActuatorCommandFailure,
    InitializationError,
    ConfigError,
)
from gridlib.renderer import GridRenderer
