from __future__ import annotations

from pathlib import Path

from PySide6.QtCore import QObject, QThread, Slot

from hurler import runner
from hurler.app_logger import get_logger
from hurler.config import Settings
from hurler.runner import RunResult
from hurler.storage import NotFoundError, StorageError, Workspace
from hurler.workers import HurlRunWorker

logger = get_logger("controller")


class WorkspaceController(QObject):
    def __init__(self, workspace: Workspace, settings: Settings, response_panel=None) -> None:
        super().__init__()
        self.workspace = workspace
        self.settings = settings
        self.response_panel = response_panel
        self.last_result: RunResult | None = None
        self._thread: QThread | None = None
        self._worker: HurlRunWorker | None = None
        self._run_done_cb = None
        self._run_running = False

    @property
    def is_running(self) -> bool:
        return self._run_running

    def run_options(self) -> dict:
        return {
            "hurl_bin": self.settings.hurl_bin,
            "timeout": self.settings.timeout,
            "max_output_bytes": self.settings.max_output_bytes,
        }

    def prepare_run(self, name: str, environment: str | None = None) -> tuple[Path, list[Path]]:
        path = self.workspace.file_path(name)
        if not path.is_file():
            raise NotFoundError(f"Hurl file not found: {name}")
        variables_files: list[Path] = []
        if environment:
            variables_files = self.workspace.environment_files(environment)
        return path, variables_files

    def _prepare_or_fail(self, name: str, environment: str | None) -> tuple[Path, list[Path]] | RunResult:
        try:
            path = self.workspace.file_path(name)
        except StorageError as exc:
            return RunResult.failure("FileNotFound", str(exc))
        try:
            return self.prepare_run(name, environment)
        except StorageError as exc:
            error_type = "EnvironmentNotFound" if environment and path.is_file() else "FileNotFound"
            return RunResult.failure(error_type, str(exc))

    def run_file(self, name: str, environment: str | None = None) -> RunResult:
        prepared = self._prepare_or_fail(name, environment)
        if isinstance(prepared, RunResult):
            self.last_result = prepared
            return prepared
        path, variables_files = prepared
        self.last_result = runner.run_hurl(path, variables_files, **self.run_options())
        return self.last_result

    def run_file_async(self, name: str, environment: str | None = None, on_finished=None) -> bool:
        if self._run_running:
            return False
        self._append_log("run_started")
        prepared = self._prepare_or_fail(name, environment)
        if isinstance(prepared, RunResult):
            self._deliver(prepared, on_finished)
            return False
        path, variables_files = prepared

        self._run_running = True
        thread = QThread(self)
        worker = HurlRunWorker(str(path), [str(p) for p in variables_files], self.run_options())
        worker.moveToThread(thread)
        thread.started.connect(worker.run)

        worker.finished.connect(self._on_async_finished)
        worker.error.connect(self._on_async_error)
        worker.finished.connect(thread.quit)
        worker.error.connect(thread.quit)
        worker.finished.connect(worker.deleteLater)
        worker.error.connect(worker.deleteLater)
        thread.finished.connect(thread.deleteLater)
        thread.finished.connect(self._on_run_thread_finished)

        self._thread = thread
        self._worker = worker
        self._run_done_cb = on_finished
        thread.start()
        return True

    @Slot(object)
    def _on_async_finished(self, result: RunResult) -> None:
        self._deliver(result, self._run_done_cb)

    @Slot(dict)
    def _on_async_error(self, error_info: dict) -> None:
        result = RunResult.failure(
            error_info.get("error_type", "WorkerError"),
            error_info.get("error_message", ""),
        )
        self._deliver(result, self._run_done_cb)

    @Slot()
    def _on_run_thread_finished(self) -> None:
        self._run_running = False
        self._thread = None
        self._worker = None

    def _deliver(self, result: RunResult, callback) -> None:
        self.last_result = result
        if result.error_type and result.error_type != "NonZeroExit":
            self._append_log(f"run_error={result.error_type}")
        else:
            self._append_log(f"run_finished duration_ms={result.duration}")
        if callable(callback):
            callback(result)

    def _append_log(self, message: str) -> None:
        append_log = getattr(self.response_panel, "append_log", None)
        if callable(append_log):
            append_log(message)
        else:
            logger.info(message)
