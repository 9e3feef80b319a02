from types import SimpleNamespace

import pytest
import serial.tools.list_ports

from touch_reset.comms.ports import (
    EmulatedPortsMapper,
    describe_serial_ports,
    emulated_bootloader_port,
    list_serial_ports,
)
from touch_reset.comms.types import EnumerationError, format_ports


def fake_port(device, description="n/a", manufacturer=None):
    return SimpleNamespace(device=device, description=description, manufacturer=manufacturer)


def test_list_serial_ports_returns_device_names(monkeypatch):
    monkeypatch.setattr(serial.tools.list_ports, "comports", lambda: [
        fake_port("/dev/ttyACM0"),
        fake_port("/dev/ttyUSB0"),
    ])

    assert list_serial_ports() == {"/dev/ttyACM0", "/dev/ttyUSB0"}


def test_list_serial_ports_wraps_failures(monkeypatch):
    def boom():
        raise OSError("no sysfs")

    monkeypatch.setattr(serial.tools.list_ports, "comports", boom)

    with pytest.raises(EnumerationError, match="listing serial ports: no sysfs") as info:
        list_serial_ports()
    assert isinstance(info.value.__cause__, OSError)


def test_describe_serial_ports(monkeypatch):
    monkeypatch.setattr(serial.tools.list_ports, "comports", lambda: [
        fake_port("COM7", "USB Serial Device", "Arduino LLC"),
        fake_port("COM3", "", "FTDI"),
        fake_port("COM1", "Communications Port"),
    ])

    assert describe_serial_ports() == [
        ("COM1", "Communications Port"),
        ("COM3", "FTDI"),
        ("COM7", "USB Serial Device (Arduino LLC)"),
    ]


@pytest.mark.parametrize("target,expected", [
    ("", "newport"),
    ("COM999", "COM9990"),
    ("/dev/ttyACM0", None),
    ("COM99", None),
])
def test_emulated_bootloader_port(target, expected):
    assert emulated_bootloader_port(target) == expected


def test_emulated_mapper_reports_new_port_after_first_call():
    mapper = EmulatedPortsMapper("/dev/cu.usbmodem999")

    assert mapper() == {"/dev/cu.usbmodem999"}
    assert mapper() == {"/dev/cu.usbmodem999", "/dev/cu.usbmodem9990"}
    assert mapper() == {"/dev/cu.usbmodem999", "/dev/cu.usbmodem9990"}


def test_emulated_mapper_empty_target():
    mapper = EmulatedPortsMapper("")

    assert mapper() == set()
    assert mapper() == {"newport"}


def test_emulated_mapper_plain_target_never_changes():
    mapper = EmulatedPortsMapper("/dev/ttyACM0")

    assert [mapper() for _ in range(3)] == [{"/dev/ttyACM0"}] * 3


def test_format_ports_is_sorted():
    assert format_ports({"b", "a"}) == "[a, b]"
    assert format_ports(set()) == "[]"
