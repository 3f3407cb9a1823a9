import io
import json
import subprocess
import threading

from hurler import runner


class _Process:
    def __init__(self, stdout="", stderr="", returncode=0, hang=False) -> None:
        self.stdout = io.BytesIO(stdout.encode("utf-8"))
        self.stderr = io.BytesIO(stderr.encode("utf-8"))
        self._hang = hang
        self._killed = threading.Event()
        self.returncode = None if hang else returncode
        self._exit_code = returncode

    @property
    def killed(self):
        return self._killed.is_set()

    def wait(self, timeout=None):
        if self._hang and not self._killed.wait(timeout):
            raise subprocess.TimeoutExpired("hurl", timeout)
        if self.returncode is None:
            self.returncode = self._exit_code
        return self.returncode

    def kill(self):
        self._killed.set()
        self.returncode = -9


def _patch_popen(monkeypatch, process, called=None):
    def fake_popen(args, **kwargs):
        if called is not None:
            called["args"] = args
            called.update(kwargs)
        return process

    monkeypatch.setattr(runner.subprocess, "Popen", fake_popen)


def test_build_args_with_variables_files():
    args = runner.build_args("a.hurl", ["dev.env", "dev.secrets.env"])
    assert args == [
        "hurl",
        "--json",
        "--very-verbose",
        "a.hurl",
        "--variables-file",
        "dev.env",
        "--variables-file",
        "dev.secrets.env",
    ]


def test_run_success_parses_json(monkeypatch):
    called = {}
    trace = {"entries": [{"calls": [], "asserts": []}]}
    _patch_popen(monkeypatch, _Process(stdout=json.dumps(trace), stderr="* verbose"), called)
    result = runner.run_hurl("a.hurl", hurl_bin="/opt/hurl")
    assert result.success is True
    assert result.json_trace == trace
    assert result.stderr == "* verbose"
    assert result.error_type is None
    assert called["args"][0] == "/opt/hurl"


def test_non_zero_exit_keeps_trace(monkeypatch):
    trace = {"entries": [{"asserts": [{"line": 3, "success": False}]}]}
    _patch_popen(monkeypatch, _Process(stdout=json.dumps(trace), returncode=4))
    result = runner.run_hurl("a.hurl")
    assert result.success is False
    assert result.exit_code == 4
    assert result.error_type == "NonZeroExit"
    assert result.json_trace == trace


def test_invalid_json_is_tolerated(monkeypatch):
    _patch_popen(monkeypatch, _Process(stdout="{not json", stderr="boom", returncode=1))
    result = runner.run_hurl("a.hurl")
    assert result.json_trace is None
    assert result.stdout == "{not json"


def test_missing_binary(monkeypatch):
    def fake_popen(args, **kwargs):
        raise FileNotFoundError("hurl")

    monkeypatch.setattr(runner.subprocess, "Popen", fake_popen)
    result = runner.run_hurl("a.hurl")
    assert result.success is False
    assert result.error_type == "HurlNotFound"
    assert "not installed" in result.stderr


def test_timeout_kills_process(monkeypatch):
    process = _Process(stdout="", stderr="* partial", hang=True)
    _patch_popen(monkeypatch, process)
    result = runner.run_hurl("a.hurl", timeout=0.01)
    assert process.killed is True
    assert result.success is False
    assert result.error_type == "Timeout"
    assert result.stderr == "* partial"


def test_output_limit(monkeypatch):
    _patch_popen(monkeypatch, _Process(stdout="", stderr="x" * 100))
    result = runner.run_hurl("a.hurl", max_output_bytes=10)
    assert result.success is False
    assert result.error_type == "OutputLimitExceeded"
    assert result.stderr == "x" * 10


def test_output_limit_kills_running_process(monkeypatch):
    process = _Process(stdout="y" * (3 * runner.READ_CHUNK_SIZE), stderr="* verbose", hang=True)
    _patch_popen(monkeypatch, process)
    result = runner.run_hurl("a.hurl", timeout=5, max_output_bytes=runner.READ_CHUNK_SIZE + 10)
    assert process.killed is True
    assert result.success is False
    assert result.error_type == "OutputLimitExceeded"
    assert len(result.stdout) == runner.READ_CHUNK_SIZE + 10
    assert result.duration < 5000


def test_output_at_limit_is_accepted(monkeypatch):
    _patch_popen(monkeypatch, _Process(stdout="", stderr="x" * 10))
    result = runner.run_hurl("a.hurl", max_output_bytes=10)
    assert result.success is True
    assert result.stderr == "x" * 10


def test_check_hurl_installed(monkeypatch):
    def fake_run(args, **kwargs):
        raise FileNotFoundError(args[0])

    monkeypatch.setattr(runner.subprocess, "run", fake_run)
    assert runner.check_hurl_installed() is False
