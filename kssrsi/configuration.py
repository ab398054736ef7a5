"""Configuration types and shared enumerations for KSS external control."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class ReturnCode(enum.Enum):
    """Outcome of an operation on the robot."""

    OK = 0
    WARN = 1
    ERROR = 2
    UNSUPPORTED = 3
    TIMEOUT = 4


class ControlMode(enum.IntEnum):
    """External control modes; the value is what goes on the wire."""

    UNSPECIFIED = 0
    JOINT_POSITION_CONTROL = 1
    JOINT_IMPEDANCE_CONTROL = 2
    JOINT_VELOCITY_CONTROL = 3
    JOINT_TORQUE_CONTROL = 4
    CARTESIAN_POSITION_CONTROL = 5
    CARTESIAN_IMPEDANCE_CONTROL = 6
    CARTESIAN_VELOCITY_CONTROL = 7
    WRENCH_CONTROL = 8


class OperationMode(enum.IntEnum):
    """Operation mode reported by the controller."""

    UNSPECIFIED = 0
    T1 = 1
    T2 = 2
    AUT = 3
    EXT = 4


class GPIOValueType(enum.IntEnum):
    """Type of the value carried by a GPIO."""

    UNSPECIFIED = 0
    BOOL = 1
    DOUBLE = 2
    LONG = 3


class CycleTime(enum.IntEnum):
    """RSI cycle time."""

    UNSPECIFIED = 0
    RSI_4MS = 1
    RSI_12MS = 2


class InstalledInterface(enum.IntEnum):
    """Interface installed on the KSS robot controller."""

    UNSPECIFIED = 0
    MXA_RSI = 1
    EKI_RSI = 2
    RSI_ONLY = 3


@dataclass(frozen=True)
class Status:
    """Result of an operation that succeeded, possibly with a warning."""

    return_code: ReturnCode
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.return_code is ReturnCode.OK


class ControlError(Exception):
    """Raised when an operation on the robot fails."""

    def __init__(self, message: str, return_code: ReturnCode = ReturnCode.ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.return_code = return_code


class UnsupportedOperation(ControlError):
    """Raised when the installed interface does not support an operation."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ReturnCode.UNSUPPORTED)


@dataclass
class GPIOConfiguration:
    """Description of one GPIO exchanged with the controller."""

    name: str = ""
    value_type: GPIOValueType = GPIOValueType.UNSPECIFIED
    initial_value: float = 0.0
    # When False, min_value and max_value are ignored.
    enable_limits: bool = False
    min_value: float = 0.0
    max_value: float = 0.0


@dataclass
class Configuration:
    """Settings for connecting to a KSS robot controller."""

    kli_ip_address: str = ""
    client_port: int = 59152
    dof: int = 6
    gpio_state_configs: list[GPIOConfiguration] = field(default_factory=list)
    gpio_command_configs: list[GPIOConfiguration] = field(default_factory=list)
    initial_control_mode: ControlMode = ControlMode.UNSPECIFIED
    # Ignored when plain RSI is used.
    cycle_time: CycleTime = CycleTime.RSI_12MS
    installed_interface: InstalledInterface = InstalledInterface.RSI_ONLY
    # Whether to reset error messages after an error was signalled.
    reset_errors: bool = True
    # Fixed port opened on the controller for EKI.
    eki_port: int = field(default=54600, init=False)