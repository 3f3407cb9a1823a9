from PySide6.QtCore import QObject, Signal

from hurler import runner


class HurlRunWorker(QObject):
    finished = Signal(object)
    error = Signal(dict)

    def __init__(self, file_path: str, variables_files: list, run_options: dict | None = None) -> None:
        super().__init__()
        self.file_path = file_path
        self.variables_files = list(variables_files)
        self.run_options = dict(run_options or {})

    def run(self) -> None:
        try:
            result = runner.run_hurl(self.file_path, self.variables_files, **self.run_options)
            self.finished.emit(result)
        except Exception as exc:
            self.error.emit(
                {
                    "error_type": "WorkerError",
                    "error_message": str(exc),
                }
            )
