"""Tests for engine listing records and their field parsers."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from composekit.types.engine import (
    ContainerInspect,
    ContainerRecord,
    NetworkRecord,
    PublishedPort,
    VolumeRecord,
    parse_engine_date,
    parse_size,
    split_list,
)


def _container_line(**overrides) -> dict:
    line = {
        "ID": "3f2a9c1b7d4e",
        "Image": "nginx:1.27",
        "Command": '"nginx -g …"',
        "CreatedAt": "2024-05-01 10:00:00 +0200 CEST",
        "Labels": "tier=web,team=qa",
        "Mounts": "",
        "Names": "web,web-alias",
        "Networks": "bridge",
        "Ports": "0.0.0.0:8080->80/tcp, 443/tcp",
        "RunningFor": "2 minutes ago",
        "Size": "1.5kB (virtual 187MB)",
        "State": "running",
        "Status": "Up 2 minutes",
    }
    line.update(overrides)
    return line


def test_parse_engine_date_keeps_numeric_offset():
    parsed = parse_engine_date("2024-05-01 10:00:00 +0200 CEST")
    assert parsed.hour == 10
    assert parsed.utcoffset() == timedelta(hours=2)


def test_parse_engine_date_drops_fractional_seconds():
    parsed = parse_engine_date("2024-05-01 10:00:00.123456789 +0000 UTC")
    assert parsed.second == 0
    assert parsed.microsecond == 0


def test_parse_engine_date_empty_and_invalid():
    assert parse_engine_date("  ") is None
    with pytest.raises(ValueError, match="Unrecognized engine timestamp"):
        parse_engine_date("yesterday")


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("0B", 0),
        ("12B", 12),
        ("1.5kB (virtual 187MB)", 1500),
        ("2MiB", 2 * 1024**2),
        ("", 0),
        ("garbage", 0),
    ],
)
def test_parse_size(value: str, expected: int):
    assert parse_size(value) == expected


def test_split_list_drops_blanks():
    assert split_list("a, b,,c ") == ["a", "b", "c"]
    assert split_list("") == []


def test_published_ports_skip_unpublished_entries():
    ports = PublishedPort.parse_many("0.0.0.0:8080->80/tcp, :::8080->80/tcp, 443/tcp")
    assert [(p.iface, p.src, p.dest) for p in ports] == [("0.0.0.0", 8080, 80), ("::", 8080, 80)]


def test_published_port_ranges_expand_per_port():
    ports = PublishedPort.parse_many("0.0.0.0:8000-8001->8000-8001/tcp, 127.0.0.1:9000->90/udp")

    assert [(p.iface, p.src, p.dest) for p in ports] == [
        ("0.0.0.0", 8000, 8000),
        ("0.0.0.0", 8001, 8001),
        ("127.0.0.1", 9000, 90),
    ]


def test_published_ports_skip_unrecognized_entries():
    ports = PublishedPort.parse_many("0.0.0.0:abc->80/tcp, 0.0.0.0:8000-8002->80-81/tcp, 0.0.0.0:8080->80/tcp")

    assert [(p.src, p.dest) for p in ports] == [(8080, 80)]


def test_container_record_with_port_range():
    record = ContainerRecord.model_validate(_container_line(Ports="0.0.0.0:8000-8001->8000-8001/tcp"))
    assert [p.src for p in record.ports] == [8000, 8001]


def test_container_record_parses_listing_line():
    record = ContainerRecord.model_validate(_container_line())

    assert record.id == "3f2a9c1b7d4e"
    assert record.name == "web"
    assert record.names == ["web", "web-alias"]
    assert record.labels == ["tier=web", "team=qa"]
    assert record.ports[0].src == 8080
    assert record.size == 1500
    assert record.exited is False


def test_container_record_exited_status():
    record = ContainerRecord.model_validate(_container_line(Status="Exited (137) 5 seconds ago"))
    assert record.exited is True


def test_container_record_rejects_missing_required_field():
    line = _container_line()
    del line["ID"]
    with pytest.raises(ValidationError):
        ContainerRecord.model_validate(line)


def test_container_record_rejects_empty_names():
    with pytest.raises(ValidationError):
        ContainerRecord.model_validate(_container_line(Names=""))


def test_network_and_volume_records():
    network = NetworkRecord.model_validate(
        {"ID": "a1b2c3", "Name": "demo_backend", "Driver": "bridge", "IPv6": "false", "Internal": "true"}
    )
    volume = VolumeRecord.model_validate(
        {"Name": "demo_dbdata", "Driver": "local", "Mountpoint": "/var/lib/docker/volumes/demo_dbdata/_data"}
    )

    assert network.internal is True
    assert network.ipv6 is False
    assert volume.mount_point.endswith("/_data")


def test_container_inspect_state():
    info = ContainerInspect.model_validate({"Id": "abc", "Name": "/web", "State": {"Running": False, "ExitCode": 1}})
    assert info.state.running is False
    assert info.state.exit_code == 1
