"""
Unit tests for packet events and access records.
"""

import json
import logging
import time

import pytest

from staticserve.events import AccessRecord, EventLog, PacketEvent, PacketKind


def data_event(**overrides):
    fields = dict(
        kind=PacketKind.DATA,
        client_ip="10.1.2.3",
        size=8192,
        file_path="/srv/www/big.bin",
        mime_type="application/octet-stream",
        packet_num=2,
        total_size=25600,
        progress=64,
    )
    fields.update(overrides)
    return PacketEvent(**fields)


class TestPacketEvent:
    """Tests for PacketEvent rendering."""

    def test_levels(self):
        assert data_event().level == logging.DEBUG
        assert data_event(kind=PacketKind.HEADERS).level == logging.INFO
        assert data_event(kind=PacketKind.FULL_RESPONSE).level == logging.INFO

    def test_text(self):
        assert data_event().to_text() == (
            "DATA client=10.1.2.3 file=/srv/www/big.bin type=application/octet-stream "
            "size=8192 packet=2 progress=64%"
        )

    def test_dict_drops_unset_fields(self):
        data = data_event().to_dict()

        assert data["type"] == "DATA"
        assert data["packet_num"] == 2
        assert "status_code" not in data
        assert "content" not in data

    def test_dict_decodes_content(self):
        event = PacketEvent(
            kind=PacketKind.FULL_RESPONSE,
            client_ip="10.1.2.3",
            size=5,
            status_code=404,
            status_text="Not Found",
            content=b"ab\xffcd",
        )
        data = event.to_dict()

        assert data["content"] == "ab\ufffdcd"
        assert data["status_text"] == "Not Found"
        json.dumps(data)


class TestAccessRecord:
    """Tests for AccessRecord rendering."""

    def test_text(self):
        record = AccessRecord(
            client_ip="10.1.2.3",
            method="GET",
            path="/index.html",
            status_code=200,
            bytes_sent=150,
            duration_ms=1.234,
            timestamp="19/Oct/2026:12:00:00 +0000",
        )
        assert record.to_text() == (
            '10.1.2.3 - - [19/Oct/2026:12:00:00 +0000] "GET /index.html" 200 150 1.23ms'
        )


class TestEventLog:
    """Tests for EventLog."""

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            EventLog("xml")

    def test_data_hidden_at_info(self, caplog):
        caplog.set_level(logging.INFO, logger="staticserve.packets")
        EventLog().packet(data_event())
        assert caplog.records == []

    def test_data_shown_at_debug(self, caplog):
        caplog.set_level(logging.DEBUG, logger="staticserve.packets")
        EventLog().packet(data_event())
        assert caplog.records[0].getMessage().startswith("DATA client=10.1.2.3")

    def test_json_packet(self, caplog):
        caplog.set_level(logging.DEBUG, logger="staticserve.packets")
        EventLog("json").packet(data_event())

        data = json.loads(caplog.records[0].getMessage())
        assert data["type"] == "DATA"
        assert data["progress"] == 64

    def test_access(self, caplog):
        caplog.set_level(logging.INFO, logger="staticserve.access")
        record = EventLog("json").access(
            client_ip="10.1.2.3",
            method="GET",
            path="/",
            status_code=200,
            bytes_sent=12,
            started=time.monotonic(),
        )

        assert record.duration_ms >= 0
        data = json.loads(caplog.records[0].getMessage())
        assert data["status_code"] == 200
        assert data["path"] == "/"
