from unittest.mock import Mock

import pytest

from serial_device.devices import pilot
from serial_device.devices.m6812 import M6812, RECORD, decode_samples
from serial_device.devices.pilot import Pilot
from serial_device.link.driver import Link


@pytest.fixture
def fake_link():
    return Mock(spec=Link)


# =============================================================================
# Pilot
# =============================================================================

class TestPilot:

    @pytest.mark.parametrize("amps,ok", [(-2.5, True), (-0.001, True), (0, False),
                                         (-3.0, False), (1.0, False)])
    def test_validate_current(self, amps, ok):
        assert pilot.validate_current(amps) is ok

    @pytest.mark.parametrize("offset,ok", [(0, True), (13.5, True), (-13.5, True),
                                           (13.6, False), (-20, False)])
    def test_validate_piezo_offset(self, offset, ok):
        assert pilot.validate_piezo_offset(offset) is ok

    def test_laser_current_command(self, fake_link):
        Pilot(fake_link).laser_current = -2.1
        fake_link.send.assert_called_once_with(":Laser:Current -2.100")

    def test_laser_current_out_of_range(self, fake_link):
        with pytest.raises(ValueError):
            Pilot(fake_link).laser_current = 0.5
        fake_link.send.assert_not_called()

    def test_piezo_frequency_command(self, fake_link):
        Pilot(fake_link).piezo_frequency = 12.5
        fake_link.send.assert_called_once_with(":Piezo:Frequency 12.50 Hz")

    def test_piezo_offset_out_of_range(self, fake_link):
        with pytest.raises(ValueError):
            Pilot(fake_link).piezo_offset = 14
        fake_link.send.assert_not_called()

    def test_echo(self, fake_link):
        Pilot(fake_link).echo = "OFF"
        fake_link.send.assert_called_once_with(":System:echo OFF")

    def test_meta(self, fake_link):
        replies = {
            "*idn?": "PILOT PC 2.0",
            ":Laser:Current?": "-2.100",
            ":Piezo:Frequency:Generator?": "SIN",
            ":Piezo:Frequency?": "10.00",
            ":Piezo:Frequency:Amplitude?": "1.000",
            ":Piezo:Offset?": "0.0",
            ":Piezo:Voltage?": "12.3",
            ":TEC:Temperature?": "25.01\r",
            ":CCoupling:Enable?": "1",
        }
        fake_link.send.side_effect = replies.__getitem__

        meta = Pilot(fake_link).meta()
        assert meta == {
            pilot.LASERID: "PILOT PC 2.0",
            pilot.LASER_CURRENT: "-2.100",
            pilot.PIEZO_WAVEFORM: "SIN",
            pilot.PIEZO_FREQUENCY: "10.00",
            pilot.PIEZO_AMPLITUDE: "1.000",
            pilot.PIEZO_OFFSET: "0.0",
            pilot.PIEZO_VOLTAGE: "12.3",
            pilot.LASER_TEMP: "25.01",
            pilot.CC_ENABLE: "1",
        }

    def test_init_piezo_sweeps_down_up_and_back_to_zero(self, fake_link):
        fake_link.send.return_value = "0.0"
        assert Pilot(fake_link).init_piezo(step=0.5) is True

        sent = [c.args[0] for c in fake_link.send.call_args_list]
        assert sent[0] == ":Piezo:Offset?"
        offsets = [float(m.split()[-1]) for m in sent[1:]]
        assert offsets[:3] == [0.0, -0.5, -1.0]
        assert min(offsets) == pilot.PIEZO_MIN
        assert max(offsets) == pilot.PIEZO_MAX
        assert offsets[-1] == 0.0
        assert len(offsets) == 27 + 53 + 27

    def test_steps_include_endpoint(self):
        assert list(pilot._steps(1, 3, 0.5)) == [1, 1.5, 2, 2.5, 3]
        assert list(pilot._steps(0, -1, 0.5)) == [0, -0.5, -1]
        assert list(pilot._steps(2, 2, 0.5)) == [2]


# =============================================================================
# M6812
# =============================================================================

def _dump(*records):
    return b"".join(RECORD.pack(*r) for r in records)


class TestM6812:

    def test_record_layout(self):
        assert RECORD.size == 7

    def test_decode_samples(self):
        data = _dump((1, 0, 100, 200), (2, 3, 0xFFFF, 0))
        assert decode_samples(data) == {
            "time": [1, 2],
            "quadrant": [0, 3],
            "ch0": [100, 0xFFFF],
            "ch1": [200, 0],
        }

    def test_trailing_partial_record_is_ignored(self):
        data = _dump((1, 0, 100, 200)) + b"\x00\x01\x02"
        assert decode_samples(data)["time"] == [1]

    def test_empty_dump(self):
        assert decode_samples(b"") == {"time": [], "quadrant": [], "ch0": [], "ch1": []}

    def test_sample(self, fake_link):
        fake_link.send.side_effect = {"POINTS": "2", "ROWSIZE": "7"}.__getitem__
        fake_link.read_exactly.return_value = _dump((10, 1, 5, 6), (11, 2, 7, 8))

        board = M6812(fake_link)
        samples = board.sample()

        fake_link.write.assert_called_once_with("SAMPLE")
        fake_link.read_exactly.assert_called_once_with(14, 10)
        assert samples["time"] == [10, 11]
        assert samples["ch1"] == [6, 8]

    def test_geometry_is_asked_once(self, fake_link):
        fake_link.send.side_effect = {"POINTS": "4", "ROWSIZE": "7"}.__getitem__
        fake_link.read_exactly.return_value = b""
        board = M6812(fake_link)
        board.sample()
        board.sample()
        assert fake_link.send.call_count == 2

    def test_meta(self, fake_link):
        fake_link.send.return_value = "M6812 rev B"
        assert M6812(fake_link).meta() == {"BOARDID": "M6812 rev B"}
        fake_link.send.assert_called_once_with("IDN")
