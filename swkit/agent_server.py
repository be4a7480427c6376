"""Guest-side agent that deploys the sandbox and stages samples for analysis."""

from __future__ import annotations

import json
import os
import re
import zipfile
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jinja2

from swkit.archiver import IllegalPathError, unarchive
from swkit.hasher import Hasher
from swkit.logger import Logger

VERSION = "0.3.0"
MAX_MESSAGE_SIZE = 64 * 1024 * 1024
DEFAULT_FILE_SCAN_TIMEOUT = 30
_BOOTSTRAP_SECONDS = 10

_ENV_REF = re.compile(r"%([^%]+)%")


def resolve_path(path: str) -> str:
    """Expand ``%NAME%`` environment references; unset names become empty."""
    return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), ""), path)


@dataclass
class ServerConfig:
    """Settings of the agent server."""

    address: str = ""
    log_level: str = ""
    log_file: str = ""
    hide_console_window: bool = False
    english_words: str = ""
    sandbox_config: str = field(default="", metadata={"key": "config_file_name"})
    template_filename: str = field(default="", metadata={"key": "template_file_name"})
    controller_filename: str = field(default="", metadata={"key": "controller_name"})


@dataclass(frozen=True)
class Screenshot:
    """One screenshot taken during the analysis."""

    id: int
    content: bytes


@dataclass(frozen=True)
class MemDump:
    """One memory dump taken during the analysis."""

    name: str
    content: bytes


@dataclass
class Artifacts:
    """Everything collected from disk once the analysis has ended."""

    api_trace: bytes = b""
    screenshots: list[Screenshot] = field(default_factory=list)
    memdumps: list[MemDump] = field(default_factory=list)
    controller_log: bytes = b""
    agent_log: bytes = b""


def _walk_files(root: str) -> Iterator[str]:
    with os.scandir(root) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            yield from _walk_files(entry.path)
        else:
            yield entry.path


class AgentServer:
    """Deploys the sandbox package and prepares and collects file analyses."""

    def __init__(
        self,
        config: ServerConfig,
        logger: Logger,
        randomizer: Callable[[], str],
        agent_path: str | os.PathLike[str] = "",
    ) -> None:
        self.config = config
        self.logger = logger
        self._randomizer = randomizer
        self.agent_path = os.fspath(agent_path)
        self._hasher = Hasher("sha256")

    def deploy(self, dest: str | os.PathLike[str], package: bytes) -> str:
        """Extract the sandbox package into ``dest`` and return its version."""
        self.logger.info("received request to deploy package in dest: %s", dest)
        self.agent_path = os.fspath(dest)
        try:
            unarchive(package, self.agent_path)
        except (zipfile.BadZipFile, IllegalPathError, OSError) as exc:
            self.logger.error("failed to unarchive package, reason: %s", exc)
            raise
        try:
            version = Path(self.agent_path, "VERSION").read_bytes()
        except OSError as exc:
            self.logger.error("reading sandbox version file failed, reason: %s", exc)
            raise
        return version.decode("utf-8", errors="replace")

    def gen_sandbox_config(self, scan_cfg: dict[str, Any]) -> str:
        """Fill in scan defaults and render the sandbox configuration template.

        ``scan_cfg`` is updated in place with the timeout and sample path used.
        """
        if not scan_cfg.get("timeout"):
            scan_cfg["timeout"] = DEFAULT_FILE_SCAN_TIMEOUT
        if not scan_cfg.get("dest_path"):
            scan_cfg["dest_path"] = (
                "%USERPROFILE%//Downloads//" + self._randomizer() + ".exe"
            )
        dest_path = scan_cfg["dest_path"]
        if not isinstance(dest_path, str):
            raise TypeError(f"dest_path must be a string, got {dest_path!r}")
        scan_cfg["dest_path"] = resolve_path(dest_path)

        template_path = Path(self.agent_path, self.config.template_filename)
        env = jinja2.Environment(autoescape=True, keep_trailing_newline=True)
        try:
            template = env.from_string(template_path.read_text(encoding="utf-8"))
        except (OSError, jinja2.TemplateError) as exc:
            self.logger.error("failed to parse template file: %s", exc)
            raise
        try:
            return template.render(**scan_cfg)
        except jinja2.TemplateError as exc:
            self.logger.error("failed to execute template: %s", exc)
            raise

    def prepare(self, config_json: str | bytes, binary: bytes) -> dict[str, Any]:
        """Write the sandbox configuration and the sample to disk.

        Returns the scan configuration with its defaults filled in.
        """
        sha256 = self._hasher.hash(binary)
        logger = self.logger.with_fields("sha256", sha256)
        logger.info("start processing")

        try:
            scan_cfg = json.loads(config_json)
        except ValueError as exc:
            logger.error("failed to unmarshal json config: %s", exc)
            raise
        if not isinstance(scan_cfg, dict):
            raise ValueError("scan config must be a JSON object")
        logger.info("scan config: %s", scan_cfg)

        rendered = self.gen_sandbox_config(scan_cfg)
        logger.info("generated scan config: %s", scan_cfg)

        config_path = Path(self.agent_path, self.config.sandbox_config)
        try:
            config_path.write_text(rendered, encoding="utf-8")
        except OSError as exc:
            logger.error("failed to write config file: %s", exc)
            raise
        try:
            Path(scan_cfg["dest_path"]).write_bytes(binary)
        except OSError as exc:
            logger.error("failed to write sample to disk, reason: %s", exc)
            raise

        timeout = float(scan_cfg["timeout"]) + _BOOTSTRAP_SECONDS
        logger.info("timeout for process to return back: %s seconds", timeout)
        return scan_cfg

    def _read_optional(self, path: Path, what: str) -> bytes:
        try:
            content = path.read_bytes()
        except OSError as exc:
            self.logger.error("failed to read %s, reason: %s", what, exc)
            return b""
        self.logger.info("%s size is: %d bytes", what, len(content))
        return content

    def _collect_dir(self, name: str, what: str) -> Iterator[tuple[str, bytes]]:
        root = os.path.join(self.agent_path, name)
        try:
            for path in _walk_files(root):
                try:
                    content = Path(path).read_bytes()
                except OSError as exc:
                    self.logger.error("failed reading %s: %s, err: %s", what, path, exc)
                    continue
                yield path, content
        except OSError as exc:
            self.logger.error("failed to collect %s, reason: %s", what, exc)

    def collect_artifacts(self) -> Artifacts:
        """Gather the logs, screenshots and memory dumps left by the analysis."""
        root = Path(self.agent_path)
        artifacts = Artifacts()
        artifacts.api_trace = self._read_optional(root / "apilog.jsonl", "api trace log")

        for path, content in self._collect_dir("screenshots", "screenshot"):
            artifacts.screenshots.append(Screenshot(len(artifacts.screenshots), content))
        self.logger.info("screenshot collection terminated: %d screenshots acquired",
                         len(artifacts.screenshots))

        for path, content in self._collect_dir("dumps", "memdump"):
            artifacts.memdumps.append(MemDump(os.path.basename(path), content))
        self.logger.info("memdumps collection terminated: %d dumps acquired",
                         len(artifacts.memdumps))

        artifacts.controller_log = self._read_optional(
            root / "logs" / "controller.log", "controller log")
        artifacts.agent_log = self._read_optional(root / self.config.log_file, "agent log")
        return artifacts