"""GPIO configuration and value holders."""

from __future__ import annotations

from dataclasses import dataclass

from kssrsi.configuration import GPIOConfiguration, GPIOValueType


@dataclass(frozen=True)
class GPIOConfig:
    """Immutable description of a GPIO."""

    name: str = ""
    value_type: GPIOValueType = GPIOValueType.UNSPECIFIED
    initial_value: float = 0.0
    enable_limits: bool = False
    min_value: float = 0.0
    max_value: float = 0.0

    @classmethod
    def from_configuration(cls, config: GPIOConfiguration) -> GPIOConfig:
        return cls(
            name=config.name,
            value_type=config.value_type,
            initial_value=config.initial_value,
            enable_limits=config.enable_limits,
            min_value=config.min_value,
            max_value=config.max_value,
        )


class GPIOValue:
    """Current value of a GPIO, read according to its configured type."""

    def __init__(self, config: GPIOConfig | None = None, value: float | None = None) -> None:
        self.config = config if config is not None else GPIOConfig()
        self._value = float(self.config.initial_value)
        if value is not None:
            self.set_value(value)

    @property
    def value(self) -> float:
        return self._value

    @property
    def value_type(self) -> GPIOValueType:
        return self.config.value_type

    def set_value(self, value: float) -> None:
        """Store a new value; raise ValueError if it breaks the enabled limits."""
        value = float(value)
        config = self.config
        if config.enable_limits and not config.min_value <= value <= config.max_value:
            raise ValueError(
                f"GPIO {config.name!r} value {value} is outside "
                f"[{config.min_value}, {config.max_value}]"
            )
        self._value = value

    def get_bool_value(self) -> bool | None:
        if self.value_type is not GPIOValueType.BOOL:
            return None
        return self._value != 0

    def get_double_value(self) -> float | None:
        if self.value_type is not GPIOValueType.DOUBLE:
            return None
        return self._value

    def get_long_value(self) -> int | None:
        if self.value_type is not GPIOValueType.LONG:
            return None
        return int(self._value)

    def __repr__(self) -> str:
        return f"GPIOValue(name={self.config.name!r}, value={self._value!r})"