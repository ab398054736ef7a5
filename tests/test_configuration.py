import pytest

from kssrsi.configuration import (
    Configuration,
    ControlError,
    ControlMode,
    CycleTime,
    GPIOConfiguration,
    GPIOValueType,
    InstalledInterface,
    ReturnCode,
    Status,
    UnsupportedOperation,
)


def test_configuration_defaults():
    config = Configuration()
    assert config.client_port == 59152
    assert config.eki_port == 54600
    assert config.dof == 6
    assert config.cycle_time is CycleTime.RSI_12MS
    assert config.installed_interface is InstalledInterface.RSI_ONLY
    assert config.initial_control_mode is ControlMode.UNSPECIFIED
    assert config.reset_errors is True
    assert config.gpio_state_configs == []
    assert config.gpio_command_configs == []


def test_eki_port_is_not_settable_through_constructor():
    with pytest.raises(TypeError):
        Configuration(eki_port=1)


def test_gpio_lists_are_independent_between_instances():
    first = Configuration()
    second = Configuration()
    first.gpio_state_configs.append(GPIOConfiguration(name="IN1"))
    assert second.gpio_state_configs == []
    assert len(first.gpio_state_configs) == 1


def test_configuration_keeps_given_values():
    config = Configuration(kli_ip_address="127.0.0.3", dof=9,
                           installed_interface=InstalledInterface.EKI_RSI)
    assert config.kli_ip_address == "127.0.0.3"
    assert config.dof == 9
    assert config.installed_interface is InstalledInterface.EKI_RSI


def test_enum_wire_values():
    config = Configuration(
        cycle_time=CycleTime(1),
        installed_interface=InstalledInterface(2),
        initial_control_mode=ControlMode(1),
    )
    assert config.cycle_time is CycleTime.RSI_4MS
    assert config.installed_interface is InstalledInterface.EKI_RSI
    assert config.initial_control_mode is ControlMode.JOINT_POSITION_CONTROL
    assert CycleTime(2) is CycleTime.RSI_12MS
    assert InstalledInterface(3) is InstalledInterface.RSI_ONLY


def test_gpio_configuration_defaults():
    config = GPIOConfiguration()
    assert config.value_type is GPIOValueType.UNSPECIFIED
    assert config.enable_limits is False
    assert config.initial_value == 0


def test_status_message_and_ok():
    assert Status(ReturnCode.OK).message == ""
    assert Status(ReturnCode.OK, "done").ok is True
    assert Status(ReturnCode.WARN, "careful").ok is False


def test_control_error_defaults_to_error_code():
    error = ControlError("Sending RSI control signal failed")
    assert error.return_code is ReturnCode.ERROR
    assert str(error) == "Sending RSI control signal failed"


def test_control_error_with_timeout_code():
    error = ControlError("timed out", ReturnCode.TIMEOUT)
    assert error.return_code is ReturnCode.TIMEOUT


def test_unsupported_operation_is_control_error():
    error = UnsupportedOperation("Not supported by plain RSI")
    assert isinstance(error, ControlError)
    assert error.return_code is ReturnCode.UNSUPPORTED
    assert error.message == "Not supported by plain RSI"