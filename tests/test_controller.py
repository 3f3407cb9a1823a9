from hurler.controller import WorkspaceController
from hurler.runner import RunResult


class FakePanel:
    def __init__(self):
        self.logs = []

    def append_log(self, message):
        self.logs.append(message)


def _capture_runs(monkeypatch):
    calls = []

    def fake_run_hurl(file_path, variables_files, **options):
        calls.append((file_path, list(variables_files), options))
        return RunResult(success=True, exit_code=0, duration=12)

    monkeypatch.setattr("hurler.controller.runner.run_hurl", fake_run_hurl)
    return calls


def test_run_file_passes_environment_files(monkeypatch, workspace, settings):
    calls = _capture_runs(monkeypatch)
    workspace.create_file("users")
    workspace.create_environment("dev", {"host": "localhost"}, {"token": "x"})

    controller = WorkspaceController(workspace, settings)
    result = controller.run_file("users", "dev")

    assert result.success is True
    assert controller.last_result is result
    path, variables_files, options = calls[0]
    assert path == workspace.file_path("users")
    assert [p.name for p in variables_files] == ["dev.env", "dev.secrets.env"]
    assert options == {
        "hurl_bin": settings.hurl_bin,
        "timeout": settings.timeout,
        "max_output_bytes": settings.max_output_bytes,
    }


def test_run_file_without_environment(monkeypatch, workspace, settings):
    calls = _capture_runs(monkeypatch)
    workspace.create_file("users")
    WorkspaceController(workspace, settings).run_file("users")
    assert calls[0][1] == []


def test_missing_file_is_reported(monkeypatch, workspace, settings):
    calls = _capture_runs(monkeypatch)
    result = WorkspaceController(workspace, settings).run_file("missing")
    assert result.success is False
    assert result.error_type == "FileNotFound"
    assert calls == []


def test_missing_environment_is_reported(monkeypatch, workspace, settings):
    calls = _capture_runs(monkeypatch)
    workspace.create_file("users")
    result = WorkspaceController(workspace, settings).run_file("users", "staging")
    assert result.error_type == "EnvironmentNotFound"
    assert "staging" in result.error_message
    assert calls == []


def test_async_run_failure_is_delivered_without_thread(monkeypatch, workspace, settings):
    _capture_runs(monkeypatch)
    panel = FakePanel()
    controller = WorkspaceController(workspace, settings, panel)
    delivered = []

    started = controller.run_file_async("missing", on_finished=delivered.append)

    assert started is False
    assert controller.is_running is False
    assert delivered[0].error_type == "FileNotFound"
    assert panel.logs == ["run_started", "run_error=FileNotFound"]


def test_async_error_becomes_failed_result(workspace, settings):
    panel = FakePanel()
    controller = WorkspaceController(workspace, settings, panel)
    delivered = []
    controller._run_done_cb = delivered.append

    controller._on_async_error({"error_type": "WorkerError", "error_message": "boom"})

    assert delivered[0].success is False
    assert delivered[0].error_message == "boom"
    assert panel.logs == ["run_error=WorkerError"]


def test_path_like_name_is_rejected(monkeypatch, workspace, settings):
    calls = _capture_runs(monkeypatch)
    result = WorkspaceController(workspace, settings).run_file("../users")
    assert result.error_type == "FileNotFound"
    assert calls == []
