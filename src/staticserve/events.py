"""
=============================================================================
PACKET AND ACCESS LOGGING
=============================================================================

Structured log records for what goes over the wire.

=============================================================================
TWO KINDS OF RECORD
=============================================================================

    PacketEvent    One per write to a client socket.
                   Tagged by PacketKind:

                   HEADERS        the 200 header block before a file body
                   DATA           one chunk of file body
                   FULL_RESPONSE  a complete status response (400/404/...)

    AccessRecord   One per connection, after it is closed.
                   The familiar "ip - - [time] "GET /path" 200 1234" line.

Each PacketKind uses a different subset of the optional fields:

    ┌───────────────┬──────────────────────────────────────────────────────┐
    │ Kind          │ Fields set (besides kind, client_ip, size)           │
    ├───────────────┼──────────────────────────────────────────────────────┤
    │ HEADERS       │ file_path, mime_type, file_size, content             │
    │ DATA          │ file_path, mime_type, packet_num, total_size,        │
    │               │ progress                                             │
    │ FULL_RESPONSE │ file_path, status_code, status_text, content         │
    └───────────────┴──────────────────────────────────────────────────────┘

Fields that do not apply stay None and are left out of the rendered line.

=============================================================================
LOGGERS
=============================================================================

    staticserve.packets    PacketEvent   HEADERS/FULL_RESPONSE at INFO,
                                         DATA at DEBUG (one per chunk,
                                         far too noisy for INFO)
    staticserve.access     AccessRecord  INFO

Route them independently in the usual way:

    logging.getLogger("staticserve.packets").setLevel(logging.WARNING)

=============================================================================
"""

import enum
import json
import logging
import time
from dataclasses import dataclass
from typing import Optional


packet_logger = logging.getLogger("staticserve.packets")
access_logger = logging.getLogger("staticserve.access")


class PacketKind(enum.Enum):
    HEADERS = "HEADERS"
    DATA = "DATA"
    FULL_RESPONSE = "FULL_RESPONSE"


@dataclass(frozen=True)
class PacketEvent:
    """A single write to a client socket."""

    kind: PacketKind
    client_ip: str
    size: int
    file_path: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None
    status_code: Optional[int] = None
    status_text: Optional[str] = None
    packet_num: Optional[int] = None
    total_size: Optional[int] = None
    progress: Optional[int] = None
    content: Optional[bytes] = None

    @property
    def level(self) -> int:
        return logging.DEBUG if self.kind is PacketKind.DATA else logging.INFO

    def to_dict(self) -> dict:
        """
        Convert to a dictionary for JSON output.

        Unset fields are dropped; ``content`` is decoded for display only.
        """
        data = {"type": self.kind.value, "client_ip": self.client_ip, "size": self.size}
        for name in (
            "file_path", "mime_type", "file_size", "status_code",
            "status_text", "packet_num", "total_size", "progress",
        ):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        if self.content is not None:
            data["content"] = self.content.decode("utf-8", errors="replace")
        return data

    def to_text(self) -> str:
        parts = [f"{self.kind.value} client={self.client_ip}"]
        if self.file_path is not None:
            parts.append(f"file={self.file_path}")
        if self.status_code is not None:
            parts.append(f"status={self.status_code} {self.status_text}")
        if self.mime_type is not None:
            parts.append(f"type={self.mime_type}")
        parts.append(f"size={self.size}")
        if self.file_size is not None:
            parts.append(f"file_size={self.file_size}")
        if self.packet_num is not None:
            parts.append(f"packet={self.packet_num}")
        if self.progress is not None:
            parts.append(f"progress={self.progress}%")
        return " ".join(parts)


@dataclass(frozen=True)
class AccessRecord:
    """
    One handled connection.

    ``method`` and ``path`` are "-" when the request line never parsed.
    """

    client_ip: str
    method: str
    path: str
    status_code: int
    bytes_sent: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "client_ip": self.client_ip,
            "method": self.method,
            "path": self.path,
            "status_code": self.status_code,
            "bytes_sent": self.bytes_sent,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        """Apache common log format plus the duration."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.bytes_sent} {self.duration_ms:.2f}ms'
        )


class EventLog:
    """
    Emits PacketEvent and AccessRecord objects as text or JSON lines.

    One instance is shared by everything that writes to clients. It holds
    no mutable state, so sharing it is safe.
    """

    def __init__(self, log_format: str = "text"):
        if log_format not in ("text", "json"):
            raise ValueError(f"Unknown log format: {log_format!r}")
        self.log_format = log_format

    def _render(self, record) -> str:
        if self.log_format == "json":
            return json.dumps(record.to_dict())
        return record.to_text()

    def packet(self, event: PacketEvent) -> None:
        if packet_logger.isEnabledFor(event.level):
            packet_logger.log(event.level, self._render(event))

    def access(
        self,
        client_ip: str,
        method: str,
        path: str,
        status_code: int,
        bytes_sent: int,
        started: float,
    ) -> AccessRecord:
        """
        Build and emit an AccessRecord.

        Args:
            started: time.monotonic() value taken when the connection was
                     accepted.
        """
        record = AccessRecord(
            client_ip=client_ip,
            method=method,
            path=path,
            status_code=status_code,
            bytes_sent=bytes_sent,
            duration_ms=(time.monotonic() - started) * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )
        access_logger.info(self._render(record))
        return record
