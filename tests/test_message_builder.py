import math

import pytest

from kssrsi.configuration import GPIOConfiguration, GPIOValueType
from kssrsi.message_builder import ControlSignal, MotionState

ZERO_RIST = ('<RIst X="0.00000" Y="0.00000" Z="0.00000" A="0.00000" '
             'B="0.00000" C="0.00000"/>')
HEAD = '<Rob Type="KUKA">' + ZERO_RIST


def _axes(count, prefix="A", value="0.00000"):
    return "".join(f' {prefix}{i}="{value}"' for i in range(1, count + 1))


def _zero_xml(count, delay=15):
    return HEAD + f"<AIPos{_axes(count)}/><Delay D=\"{delay}\"/><IPOC>0</IPOC></Rob>"


def _zero_state(dof):
    state = MotionState(dof)
    state.create_from_xml(_zero_xml(dof))
    return state


def _signal(dof, state):
    signal = ControlSignal(dof)
    signal.set_initial_positions(state)
    return signal


# Motion state

def test_zero_init_4dof():
    state = MotionState(4)
    state.create_from_xml(_zero_xml(4))
    assert state.measured_cartesian_positions[:4] == [0.0, 0.0, 0.0, 0.0]
    assert state.measured_positions == [0.0, 0.0, 0.0, 0.0]
    assert state.delay == 15
    assert state.ipoc == 0


def test_zero_init_9dof_with_external_axes():
    state = MotionState(9)
    xml = HEAD + f"<AIPos{_axes(6)}/><EIPos{_axes(6, 'E')}/><Delay D=\"15\"/><IPOC>0</IPOC></Rob>"
    state.create_from_xml(xml)
    assert all(k == 0.0 for k in state.measured_cartesian_positions)
    assert state.measured_positions == [0.0] * 9
    assert state.delay == 15
    assert state.ipoc == 0


def test_zero_init_12dof_with_external_axes():
    state = MotionState(12)
    xml = HEAD + f"<AIPos{_axes(6)}/><EIPos{_axes(6, 'E')}/><Delay D=\"15\"/><IPOC>0</IPOC></Rob>"
    state.create_from_xml(xml)
    assert state.measured_positions == [0.0] * 12


def test_9dof_without_external_node_is_rejected():
    state = MotionState(9)
    with pytest.raises(ValueError):
        state.create_from_xml(_zero_xml(9))


def test_external_axes_are_linear_in_millimetres():
    state = MotionState(8)
    xml = (HEAD + f"<AIPos{_axes(6)}/><EIPos E1=\"1000.0\" E2=\"-250.0\""
           + _axes(4, "E").replace(" E1=", " E3=").replace(" E2=", " E4=")
           .replace(" E3=\"0.00000\" E4", " E5=\"0.00000\" E6", 1)
           + "/><Delay D=\"4\"/><IPOC>12</IPOC></Rob>")
    xml = (HEAD + f"<AIPos{_axes(6)}/><EIPos E1=\"1000.0\" E2=\"-250.0\" E3=\"7.0\" "
           "E4=\"0.0\" E5=\"0.0\" E6=\"0.0\"/><Delay D=\"4\"/><IPOC>12</IPOC></Rob>")
    state.create_from_xml(xml)
    assert state.measured_positions[6] == pytest.approx(1.0)
    assert state.measured_positions[7] == pytest.approx(-0.25)
    assert len(state.measured_positions) == 8
    assert state.ipoc == 12


def test_zero_init_0dof():
    state = MotionState(0)
    xml = HEAD + '<AIPos "/><Delay D="15"/><IPOC>0</IPOC></Rob>'
    with pytest.raises(ValueError):
        state.create_from_xml(xml)
    assert all(k == 0.0 for k in state.measured_cartesian_positions)
    assert state.measured_positions == []


def test_empty_state_is_nan():
    state = MotionState(6)
    assert all(math.isnan(k) for k in state.measured_positions)
    assert all(math.isnan(k) for k in state.measured_cartesian_positions)
    assert state.has_positions is False


def test_init_1dof():
    state = MotionState(1)
    state.create_from_xml(HEAD + '<AIPos A1="2.00000"/><Delay D="15"/><IPOC>0</IPOC></Rob>')
    assert state.measured_positions[0] == pytest.approx(0.034906, abs=0.02)
    assert state.has_positions is True


def test_init_joint_positions_6dof():
    state = MotionState(6)
    xml = (HEAD + '<AIPos A1="5.32000" A2="6.4" A3="111.30000" A4="12.20000" A5="0.00000" '
           'A6="12.50000"/><Delay D="0"/><IPOC>0</IPOC></Rob>')
    state.create_from_xml(xml)
    assert all(k == 0.0 for k in state.measured_cartesian_positions)
    expected = [0.092851, 0.1117010, 1.9425514, 0.21331763, 0, 0.218166156]
    for got, want in zip(state.measured_positions, expected):
        assert got == pytest.approx(want, abs=0.002)
    assert state.delay == 0
    assert state.ipoc == 0


def test_init_cartesian_positions_6dof():
    state = MotionState(6)
    xml = ('<Rob Type="KUKA"><RIst X="5.32000" Y="6.4" Z="111.30000" A="12.20000" '
           'B="0.00000" C="12.50000"/><AIPos A1="0.000" A2="0.00000" A3="0.00000" '
           'A4="0.00000" A5="0.00000" A6="0.00000"/><Delay D="8"/><IPOC>0</IPOC></Rob>')
    state.create_from_xml(xml)
    assert all(k == 0.0 for k in state.measured_positions)
    expected = [5.32, 6.4, 111.3, 0.21293, 0.0, 0.218166]
    for got, want in zip(state.measured_cartesian_positions, expected):
        assert got == pytest.approx(want, abs=0.002)
    assert state.delay == 8
    assert state.ipoc == 0


def test_fill_everything_6dof():
    state = MotionState(6)
    xml = ('<Rob Type="KUKA"><RIst X="5.32000" Y="6.4" Z="111.30000" A="12.20000" '
           'B="0.00000" C="12.50000"/><AIPos A1="8.2" A2="3.3" A3="111.67" A4="12.22220" '
           'A5="-35.20000" A6="-12.50000"/><Delay D="11"/><IPOC>357</IPOC></Rob>')
    state.create_from_xml(xml)
    expected_cart = [5.32, 6.4, 111.3, 0.21293, 0.0, 0.218166]
    for got, want in zip(state.measured_cartesian_positions, expected_cart):
        assert got == pytest.approx(want, abs=0.002)
    expected_joints = [0.14311699, 0.0575958, 1.9490091, 0.213317, -0.614355, -0.218166]
    for got, want in zip(state.measured_positions, expected_joints):
        assert got == pytest.approx(want, abs=0.002)
    assert state.delay == 11
    assert state.ipoc == 357


def test_invalid_ipoc_keeps_parsed_values():
    state = MotionState(4)
    xml = HEAD + f'<AIPos{_axes(4)}/><Delay D="15"/><IPOC>TTTT</IPOC></Rob>'
    with pytest.raises(ValueError):
        state.create_from_xml(xml)
    assert all(k == 0.0 for k in state.measured_cartesian_positions)
    assert all(k == 0.0 for k in state.measured_positions)
    assert state.delay == 15
    assert state.ipoc == 0


@pytest.mark.parametrize("xml", [
    HEAD + f'<AIPos{_axes(4)}/><Delay D="HHH"/><IPOC>0</IPOC></Rob>',
    HEAD + '<AIPos A1="0.00000" A2="0.00000" A3="0.00000" A4="asdfggdfs"/>'
           '<Delay D="15"/><IPOC>0</IPOC></Rob>',
    HEAD + '<AIPos A1="bbbba" A2="0.00000" A3="0.00000" A4="0.00000"/>'
           '<Delay D="15"/><IPOC>0</IPOC></Rob>',
    '<Rob Type="KUKA"><RIst X="Gggggg" Y="0.00000" Z="0.00000" A="0.00000" B="0.00000" '
    f'C="0.00000"/><AIPos{_axes(4)}/><Delay D="15"/><IPOC>0</IPOC></Rob>',
    '<Rob Type="KUKA"><RIst X="0.00000" Y="0.00000" Z="0.00000" A="0.00000" B="0.00000" '
    f'C="TTTTTTTTT"/><AIPos{_axes(4)}/><Delay D="15"/><IPOC>TTTT</IPOC></Rob>',
    "I'm not a valid XML",
    "",
    "1" * 137,
])
def test_invalid_messages_are_rejected(xml):
    state = MotionState(4)
    with pytest.raises(ValueError):
        state.create_from_xml(xml)


def test_none_is_rejected():
    state = MotionState(4)
    with pytest.raises(ValueError, match="null"):
        state.create_from_xml(None)


def test_bytes_message_is_accepted():
    state = MotionState(4)
    state.create_from_xml(_zero_xml(4, delay=3).encode("ascii"))
    assert state.delay == 3


def test_gpio_state_values_are_parsed():
    configs = [GPIOConfiguration("DI1", GPIOValueType.BOOL),
               GPIOConfiguration("AI1", GPIOValueType.DOUBLE)]
    state = MotionState(2, configs)
    xml = (HEAD + f'<AIPos{_axes(2)}/><Delay D="5"/><GPIO DI1="1" AI1="2.5"/>'
           "<IPOC>9</IPOC></Rob>")
    state.create_from_xml(xml)
    assert state.measured_gpio_values[0].get_bool_value() is True
    assert state.measured_gpio_values[1].get_double_value() == 2.5
    assert state.ipoc == 9


def test_missing_gpio_node_is_rejected():
    state = MotionState(2, [GPIOConfiguration("DI1", GPIOValueType.BOOL)])
    with pytest.raises(ValueError, match="GPIO"):
        state.create_from_xml(_zero_xml(2))


# Control signal

def test_signal_zero_init_6dof():
    signal = _signal(6, _zero_state(6))
    expected = ('<Sen Type="KROSHU"><AK A1="0.000000" A2="0.000000" A3="0.000000" '
                'A4="0.000000" A5="0.000000" A6="0.000000"/><Stop>0</Stop><IPOC>0</IPOC></Sen>')
    assert signal.create_xml_string(0) == expected


def test_signal_zero_init_4dof():
    signal = _signal(4, _zero_state(4))
    expected = ('<Sen Type="KROSHU"><AK A1="0.000000" A2="0.000000" A3="0.000000" '
                'A4="0.000000"/><Stop>0</Stop><IPOC>0</IPOC></Sen>')
    assert signal.create_xml_string(0) == expected


def test_signal_zero_init_0dof():
    signal = _signal(0, _zero_state(6))
    assert signal.create_xml_string(0) == '<Sen Type="KROSHU"><AK/><Stop>0</Stop><IPOC>0</IPOC></Sen>'


def test_initial_motion_state_has_smaller_dof():
    signal = _signal(4, _zero_state(3))
    signal.add_joint_position_values([3.4, 3.4, 3.4, 3.4])
    expected = ('<Sen Type="KROSHU"><AK A1="194.805650" A2="194.805650" A3="194.805650" '
                'A4="194.805650"/><Stop>0</Stop><IPOC>0</IPOC></Sen>')
    assert signal.create_xml_string(0) == expected


def test_fill_everything():
    state = MotionState(6)
    state.create_from_xml(HEAD + '<AIPos A1="1.00000" A2="2.00000" A3="3.00000" A4="4.00000" '
                                 'A5="5.00000" A6="6.00000"/><Delay D="15"/><IPOC>0</IPOC></Rob>')
    signal = _signal(6, state)
    signal.add_joint_position_values([3.4] * 6)
    expected = ('<Sen Type="KROSHU"><AK A1="193.805650" A2="192.805650" A3="191.805650" '
                'A4="190.805650" A5="189.805650" A6="188.805650"/><Stop>1</Stop>'
                '<IPOC>543265442</IPOC></Sen>')
    assert signal.create_xml_string(543265442, True) == expected


def test_init_with_different_values():
    state = MotionState(6)
    state.create_from_xml(HEAD + '<AIPos A1="194.80565" A2="200.535228" A3="206.264806" '
                                 'A4="211.994384" A5="217.723962" A6="223.45354"/>'
                                 '<Delay D="15"/><IPOC>0</IPOC></Rob>')
    signal = _signal(6, state)
    signal.add_joint_position_values([3.4] * 6)
    expected = ('<Sen Type="KROSHU"><AK A1="0.000000" A2="-5.729578" A3="-11.459156" '
                'A4="-17.188734" A5="-22.918312" A6="-28.647890"/><Stop>0</Stop>'
                '<IPOC>0</IPOC></Sen>')
    assert signal.create_xml_string(0, False) == expected


def test_add_positions_multiple_times():
    signal = _signal(4, _zero_state(4))
    signal.add_joint_position_values([2.0, 3.2, 4.0, 5.00000])
    assert signal.create_xml_string(0) == (
        '<Sen Type="KROSHU"><AK A1="114.591559" A2="183.346494" A3="229.183118" '
        'A4="286.478898"/><Stop>0</Stop><IPOC>0</IPOC></Sen>')

    signal.add_joint_position_values([1.9, 3.1, 4.006, 5.0])
    assert signal.create_xml_string(0) == (
        '<Sen Type="KROSHU"><AK A1="108.861981" A2="177.616916" A3="229.526893" '
        'A4="286.478898"/><Stop>0</Stop><IPOC>0</IPOC></Sen>')

    signal.add_joint_position_values([1.0, 3.4, 4.0, -5.00000])
    assert signal.create_xml_string(1) == (
        '<Sen Type="KROSHU"><AK A1="57.295780" A2="194.805650" A3="229.183118" '
        'A4="-286.478898"/><Stop>0</Stop><IPOC>1</IPOC></Sen>')


def test_add_positions_twice():
    state = MotionState(4)
    state.create_from_xml(_zero_xml(4, delay=0))
    signal = _signal(4, state)
    signal.add_joint_position_values([2.0, 3.2, 4.000, 5.00000])
    signal.add_joint_position_values([2.8, 3.6, 4.120, 5.3])
    assert signal.create_xml_string(0) == (
        '<Sen Type="KROSHU"><AK A1="160.428183" A2="206.264806" A3="236.058612" '
        'A4="303.667631"/><Stop>0</Stop><IPOC>0</IPOC></Sen>')


def test_add_more_values_than_dof_ignores_extra():
    signal = ControlSignal(2)
    signal.add_joint_position_values([1.0, 2.0, 3.0])
    assert signal.joint_position_values == [1.0, 2.0]


def test_initial_positions_flag_and_reset():
    signal = ControlSignal(4)
    assert signal.initial_positions_set is False
    signal.set_initial_positions(_zero_state(4))
    assert signal.initial_positions_set is True
    signal.reset()
    assert signal.initial_positions_set is False


def test_external_axes_in_control_signal():
    signal = ControlSignal(8)
    signal.add_joint_position_values([0.0] * 6 + [0.5, 0.25])
    expected = ('<Sen Type="KROSHU"><AK' + _axes(6, "A", "0.000000")
                + '/><EK E1="500.000000" E2="250.000000"/><Stop>0</Stop>'
                '<IPOC>3</IPOC></Sen>')
    assert signal.create_xml_string(3) == expected


def test_gpio_commands_in_control_signal():
    configs = [GPIOConfiguration("DO1", GPIOValueType.BOOL),
               GPIOConfiguration("AO1", GPIOValueType.DOUBLE),
               GPIOConfiguration("CNT", GPIOValueType.LONG)]
    signal = ControlSignal(1, configs)
    signal.gpio_values[0].set_value(1)
    signal.gpio_values[1].set_value(2.5)
    signal.gpio_values[2].set_value(42)
    expected = ('<Sen Type="KROSHU"><AK A1="0.000000"/><Stop>0</Stop>'
                '<GPIO DO1="1" AO1="2.500000" CNT="42"/><IPOC>7</IPOC></Sen>')
    assert signal.create_xml_string(7) == expected


def test_gpio_of_unspecified_type_cannot_be_encoded():
    signal = ControlSignal(1, [GPIOConfiguration("X1")])
    with pytest.raises(ValueError):
        signal.create_xml_string(0)