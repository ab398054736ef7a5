# kssrsi

A pure-Python client for driving a KSS robot controller from an external
computer. Joint positions are streamed over the RSI UDP protocol; when the
EKI interface is installed on the controller, the RSI program itself is
started, stopped and supervised over a TCP connection. The package has no
dependencies outside the standard library.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Package layout

| Module | Contents |
| --- | --- |
| `kssrsi.configuration` | `Configuration`, `GPIOConfiguration`, the enums `ReturnCode`, `ControlMode`, `OperationMode`, `GPIOValueType`, `CycleTime`, `InstalledInterface`, the `Status` result and the exceptions `ControlError` and `UnsupportedOperation` |
| `kssrsi.gpio` | `GPIOConfig` and `GPIOValue` for extra signals exchanged with each RSI cycle |
| `kssrsi.message_builder` | `MotionState` (parses the controller's RSI XML) and `ControlSignal` (builds the reply XML) |
| `kssrsi.rsi_endpoint` | `Endpoint`, the UDP socket that answers RSI requests |
| `kssrsi.rsi_robot` | `RsiRobot`, control over plain RSI |
| `kssrsi.eki_extension` | `EventHandler`, `InitializationData`, `StatusUpdate` and the handler base classes `EventHandlerExtension` and `StatusUpdateHandler` |
| `kssrsi.eki_client` | `EkiClient`, the TCP client for the EKI command channel, with `CommandType`, `EventType`, `EventResponse` and `extract_version_numbers` |
| `kssrsi.eki_robot` | `EkiRobot`, RSI control whose RSI program is managed through EKI |
| `kssrsi.robot` | `Robot`, which picks `RsiRobot` or `EkiRobot` from the configuration |

## Results and errors

Operations that succeed return a `Status` holding a `ReturnCode` and a
message; `Status.ok` is true only for `ReturnCode.OK`. Some calls succeed
with `ReturnCode.WARN`, for example `EkiClient.start()` when no event handler
was registered, or `stop_rsi()` when no RSI program is running.

Failures raise `ControlError`, whose `return_code` is `ReturnCode.ERROR`, or
`ReturnCode.TIMEOUT` when the EKI server does not answer a request within
`response_timeout` seconds (4 by default). Operations that the chosen
interface cannot perform raise `UnsupportedOperation`, a subclass of
`ControlError`. Malformed messages raise `ValueError`.

## Working with RSI messages

Each RSI cycle the controller sends an XML document with the measured
Cartesian pose, the axis positions in degrees, a delay counter and an IPOC
timestamp. `MotionState` reads it and stores axis positions and the A, B and
C angles in radians; external axes (beyond the sixth) are read as
millimetres and stored in metres:

```python
from kssrsi.message_builder import ControlSignal, MotionState

state = MotionState(6)
state.create_from_xml(
    '<Rob Type="KUKA"><RIst X="0.0" Y="0.0" Z="0.0" A="0.0" B="0.0" C="0.0"/>'
    '<AIPos A1="1.0" A2="2.0" A3="3.0" A4="4.0" A5="5.0" A6="6.0"/>'
    '<Delay D="15"/><IPOC>0</IPOC></Rob>'
)
print(state.measured_positions, state.delay, state.ipoc)
```

A malformed document raises `ValueError`; values parsed before the error was
found are kept.

The reply carries axis corrections relative to the positions seen when
control started. `ControlSignal` remembers those initial positions and
writes each correction in degrees with six decimals:

```python
signal = ControlSignal(6)
signal.set_initial_positions(state)
signal.add_joint_position_values([3.4] * 6)
xml = signal.create_xml_string(0, False)
```

`add_joint_position_values` overwrites only as many leading axes as it is
given. Passing `True` as the second argument of `create_xml_string` sets the
`<Stop>` flag, which ends the RSI program on the controller. `reset()`
forgets the initial positions, so that the next received state becomes the
new reference.

GPIO values listed in `Configuration.gpio_state_configs` and
`gpio_command_configs` are read from and written to a `<GPIO>` element, each
according to its `GPIOValueType`. With `enable_limits` set, a value outside
`min_value`..`max_value` raises `ValueError`.

## Controlling a robot

```python
from kssrsi.configuration import Configuration, ControlMode, InstalledInterface
from kssrsi.robot import Robot

config = Configuration(
    kli_ip_address="192.0.2.10",
    installed_interface=InstalledInterface.EKI_RSI,
)
with Robot(config) as robot:
    robot.setup()
    robot.start_controlling(ControlMode.JOINT_POSITION_CONTROL)
    robot.receive_motion_state(1.0)
    targets = list(robot.last_motion_state.measured_positions)
    robot.control_signal.add_joint_position_values(targets)
    robot.send_control_signal()
    robot.stop_controlling()
```

`receive_motion_state(timeout)` takes seconds; `None` waits indefinitely.
The first motion state received after setup or after `stop_controlling()`
becomes the reference for the control signal. `send_control_signal()` raises
`ControlError` until a motion state has been received. `stop_controlling()`
receives a state first if no request is waiting, sends the stop signal, and
then empties the UDP buffer and resets the control signal.

`Robot` accepts `InstalledInterface.RSI_ONLY` (the default) and
`InstalledInterface.EKI_RSI`; any other value raises `ValueError`. The
chosen implementation is available as `Robot.interface`. `Robot`,
`RsiRobot`, `EkiRobot`, `EkiClient` and `Endpoint` are context managers that
close their sockets on exit.

### Plain RSI

With `RSI_ONLY` the RSI program must be started on the controller by hand.
`setup()` binds the UDP endpoint to `Configuration.client_port` (59152 by
default). `start_controlling`, `switch_control_mode`,
`register_event_handler` and all monitoring calls raise
`UnsupportedOperation`.

### RSI through EKI

With `EKI_RSI`, `setup()` also connects to the controller's EKI port (54600)
at `kli_ip_address` and checks that the server's major version matches the
client's. `start_controlling(control_mode)` sends the control mode and starts
the RSI program; `stop_controlling()` sends the RSI stop signal and then
cancels the program. `switch_control_mode` raises `UnsupportedOperation`.

Events from the controller are delivered to an `EventHandler` registered with
`register_event_handler` (`on_sampling`, `on_stopped`, `on_error`,
`on_control_mode_switch`); the default handler only records the latest
event of each kind. `EkiRobot` additionally offers `turn_on_drives`,
`turn_off_drives`, `set_cycle_time`, `cancel_rsi_program`, and hooks for the
connection data (`register_event_handler_extension`, receiving an
`InitializationData`) and for periodic status reports
(`register_status_response_handler`, receiving a `StatusUpdate`).

## What the package does not do

- Monitoring is not available: `start_monitoring`, `stop_monitoring`,
  `create_monitoring_subscription` and `cancel_monitoring_subscription`
  raise `UnsupportedOperation` on every interface, and
  `has_monitoring_subscription()` is always false.
- `InstalledInterface.MXA_RSI` is not supported.
- Only joint positions are sent; torque, velocity and Cartesian commands are
  not part of the RSI reply.
- There is no command-line tool; the package is a library.