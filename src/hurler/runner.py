from __future__ import annotations

import json
import subprocess
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from hurler.app_logger import get_logger
from hurler.config import DEFAULT_MAX_OUTPUT, DEFAULT_TIMEOUT

logger = get_logger("runner")

READ_CHUNK_SIZE = 64 * 1024


@dataclass
class RunResult:
    success: bool
    duration: int = 0
    json_trace: Any = None
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    error_type: str | None = None
    error_message: str = ""
    args: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error_type: str, error_message: str, **kwargs: Any) -> RunResult:
        kwargs.setdefault("stderr", error_message)
        return cls(success=False, error_type=error_type, error_message=error_message, **kwargs)


def build_args(file_path: str | Path, variables_files: Iterable[str | Path] = (), hurl_bin: str = "hurl") -> list[str]:
    args = [hurl_bin, "--json", "--very-verbose", str(file_path)]
    for path in variables_files:
        args.extend(["--variables-file", str(path)])
    return args


def parse_json_trace(stdout: str) -> Any:
    if not stdout.strip():
        return None
    try:
        return json.loads(stdout)
    except ValueError:
        return None


class _StreamReader(threading.Thread):
    """Collect one pipe in chunks, stopping once ``limit`` bytes are held."""

    def __init__(self, stream, limit: int, on_overflow) -> None:
        super().__init__(daemon=True)
        self.stream = stream
        self.limit = limit
        self.on_overflow = on_overflow
        self.chunks: list[bytes] = []
        self.size = 0
        self.exceeded = False

    def run(self) -> None:
        try:
            for chunk in iter(lambda: self.stream.read1(READ_CHUNK_SIZE), b""):
                room = self.limit - self.size
                if len(chunk) > room:
                    self.chunks.append(chunk[:room])
                    self.size = self.limit
                    self.exceeded = True
                    self.on_overflow()
                    break
                self.chunks.append(chunk)
                self.size += len(chunk)
        finally:
            self.stream.close()

    def text(self) -> str:
        return b"".join(self.chunks).decode("utf-8", errors="replace")


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def run_hurl(
    file_path: str | Path,
    variables_files: Iterable[str | Path] = (),
    *,
    hurl_bin: str = "hurl",
    timeout: float = DEFAULT_TIMEOUT,
    max_output_bytes: int = DEFAULT_MAX_OUTPUT,
) -> RunResult:
    args = build_args(file_path, variables_files, hurl_bin)
    logger.info("running %s", " ".join(args))
    started = time.monotonic()
    try:
        process = subprocess.Popen(args, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except FileNotFoundError as exc:
        return RunResult.failure(
            "HurlNotFound",
            f"{hurl_bin} is not installed or not in PATH: {exc}",
            duration=_elapsed_ms(started),
            args=args,
        )
    except OSError as exc:
        return RunResult.failure("RunnerError", str(exc), duration=_elapsed_ms(started), args=args)

    overflow = threading.Event()

    def on_overflow() -> None:
        if not overflow.is_set():
            overflow.set()
            process.kill()

    readers = [
        _StreamReader(process.stdout, max_output_bytes, on_overflow),
        _StreamReader(process.stderr, max_output_bytes, on_overflow),
    ]
    for reader in readers:
        reader.start()

    timed_out = False
    try:
        process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        timed_out = not overflow.is_set()
        process.kill()
        process.wait()
    for reader in readers:
        reader.join()

    duration = _elapsed_ms(started)
    stdout, stderr = readers[0].text(), readers[1].text()
    result = RunResult(
        success=process.returncode == 0,
        duration=duration,
        json_trace=parse_json_trace(stdout),
        stdout=stdout,
        stderr=stderr,
        exit_code=process.returncode,
        args=args,
    )
    if overflow.is_set():
        result.success = False
        result.error_type = "OutputLimitExceeded"
        result.error_message = f"hurl output exceeded {max_output_bytes} bytes"
        logger.warning(result.error_message)
    elif timed_out:
        result.success = False
        result.error_type = "Timeout"
        result.error_message = f"hurl timed out after {timeout:g}s"
        result.stderr = stderr or result.error_message
        logger.warning(result.error_message)
    elif process.returncode != 0:
        result.error_type = "NonZeroExit"
        result.error_message = f"hurl exited with code {process.returncode}"
    logger.info("hurl finished exit_code=%s duration_ms=%s", process.returncode, duration)
    return result



def check_hurl_installed(hurl_bin: str = "hurl") -> bool:
    try:
        completed = subprocess.run(
            [hurl_bin, "--version"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=10,
        )
    except (OSError, subprocess.SubprocessError):
        return False
    return completed.returncode == 0
