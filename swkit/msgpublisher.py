"""Command that publishes a sample hash to the topic of one pipeline service."""

from __future__ import annotations

import argparse
import os
import socket
import struct
import sys
from dataclasses import dataclass
from typing import Any, Protocol

from swkit.config import VERSION, ConfigError, load
from swkit.logger import Logger, new_logger

DEPLOYMENT_ENV = "SWKIT_DEPLOYMENT_KIND"
DEFAULT_CONFIG_PATH = "./../../configs/msgpublisher"

_MAGIC = b"  V2"
_FRAME_RESPONSE = 0
_FRAME_ERROR = 1
_HEARTBEAT = b"_heartbeat_"
_OK = b"OK"
_CONNECT_TIMEOUT = 10.0

_SERVICE_TOPICS = {
    "orchestrator": "orchestrator_topic",
    "meta": "meta_topic",
    "pe": "pe_topic",
    "postprocessor": "postprocessor_topic",
}


class NsqError(Exception):
    """Raised when nsqd rejects a command or answers unexpectedly."""


@dataclass
class PublisherConfig:
    """Settings read from the publisher's configuration file."""

    log_level: str = ""
    shared_volume: str = ""
    nsqd: str = ""
    orchestrator_topic: str = ""
    meta_topic: str = ""
    postprocessor_topic: str = ""
    pe_topic: str = ""


class _Publisher(Protocol):
    def publish(self, topic: str, message: bytes) -> None: ...

    def close(self) -> None: ...


def _recv_exact(sock: socket.socket, size: int) -> bytes:
    chunks = bytearray()
    while len(chunks) < size:
        chunk = sock.recv(size - len(chunks))
        if not chunk:
            raise ConnectionError("connection closed by nsqd")
        chunks += chunk
    return bytes(chunks)


class NsqPublisher:
    """Publishes messages to an nsqd instance over its TCP protocol.

    The connection is opened on the first publish.
    """

    def __init__(self, address: str) -> None:
        self.address = address
        self._timeout = _CONNECT_TIMEOUT
        self._sock: socket.socket | None = None

    def __enter__(self) -> NsqPublisher:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _connect(self) -> socket.socket:
        host, sep, port = self.address.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"invalid nsqd address: {self.address!r}")
        sock = socket.create_connection(
            (host.strip("[]") or "localhost", int(port)), timeout=self._timeout
        )
        try:
            sock.sendall(_MAGIC)
        except OSError:
            sock.close()
            raise
        self._sock = sock
        return sock

    @staticmethod
    def _read_frame(sock: socket.socket) -> tuple[int, bytes]:
        (size,) = struct.unpack(">I", _recv_exact(sock, 4))
        if size < 4:
            raise NsqError(f"invalid frame size {size}")
        (frame_type,) = struct.unpack(">I", _recv_exact(sock, 4))
        return frame_type, _recv_exact(sock, size - 4)

    def publish(self, topic: str, message: bytes) -> None:
        """Publish ``message`` to ``topic`` and wait for nsqd to accept it."""
        if not topic:
            raise ValueError("topic must not be empty")
        body = bytes(message)
        sock = self._sock or self._connect()
        command = b"PUB " + topic.encode() + b"\n" + struct.pack(">I", len(body)) + body
        try:
            sock.sendall(command)
            while True:
                frame_type, data = self._read_frame(sock)
                if frame_type == _FRAME_RESPONSE and data == _HEARTBEAT:
                    sock.sendall(b"NOP\n")
                    continue
                break
        except OSError:
            self.close()
            raise
        if frame_type == _FRAME_ERROR:
            raise NsqError(data.decode("utf-8", errors="replace"))
        if frame_type != _FRAME_RESPONSE or data != _OK:
            raise NsqError(f"unexpected response from nsqd: type {frame_type}, {data!r}")

    def close(self) -> None:
        """Close the connection, if one is open."""
        if self._sock is not None:
            try:
                self._sock.close()
            finally:
                self._sock = None


def topic_for_service(config: PublisherConfig, service: str) -> str | None:
    """Return the topic configured for ``service``, or None if it is unknown."""
    attr = _SERVICE_TOPICS.get(service)
    return None if attr is None else getattr(config, attr)


def run(
    logger: Logger,
    config_path: str,
    sha256: str,
    service: str,
    publisher: _Publisher | None = None,
) -> str | None:
    """Load the configuration and publish ``sha256`` to the service's topic.

    Returns the topic written to, or None for an unknown service.
    """
    env = os.environ.get(DEPLOYMENT_ENV, "")
    logger.info("loading %s configuration from %s", env, config_path)
    cfg = load(config_path, env, PublisherConfig)

    owned = publisher is None
    pub: _Publisher = NsqPublisher(cfg.nsqd) if publisher is None else publisher
    topic = topic_for_service(cfg, service)
    try:
        if topic is not None:
            try:
                pub.publish(topic, sha256.encode())
            except (OSError, NsqError, ValueError) as exc:
                logger.error("failed to publish to topic %s: %s", topic, exc)
    finally:
        if owned:
            pub.close()

    logger.info("Message has been produced to topic: %s", topic or "")
    return topic


def main(argv: list[str] | None = None) -> int:
    """Parse the command line and publish one message."""
    parser = argparse.ArgumentParser(prog="msgpublisher")
    parser.add_argument("-service", "--service", default="",
                        help="Service name to write to. (Required)")
    parser.add_argument("-sha256", "--sha256", default="",
                        help="Hash of the file to scan. (Required)")
    parser.add_argument("-config", "--config", default=DEFAULT_CONFIG_PATH,
                        help="path to the config file")
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    if not args.service or not args.sha256:
        parser.print_help(sys.stderr)
        return 1

    logger = new_logger().with_fields("version", VERSION, "sha256", args.sha256)
    try:
        run(logger, args.config, args.sha256, args.service)
    except (ConfigError, OSError, ValueError) as exc:
        logger.error("failed to run the server: %s", exc)
        return -1
    return 0