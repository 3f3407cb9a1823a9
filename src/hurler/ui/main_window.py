import sys
from enum import Enum

from PySide6.QtCore import Qt
from PySide6.QtGui import QFont
from PySide6.QtWidgets import QApplication, QInputDialog, QMainWindow, QMessageBox, QSplitter, QStackedWidget, QLabel

from hurler.config import Settings
from hurler.controller import WorkspaceController
from hurler.runner import RunResult
from hurler.storage import StorageError, Workspace
from hurler.ui.env_dialog import EnvEditorDialog
from hurler.ui.panels import RequestEditorPanel, ResponsePanel, SidebarPanel

APP_STYLE = [
    "QMainWindow { background-color: #f3f4f6; }",
    "QWidget { color: #111827; }",
    "QSplitter::handle { background-color: #e5e7eb; }",
    "QLineEdit, QPlainTextEdit, QComboBox, QTableWidget, QTreeWidget { background-color: #ffffff; "
    "border: 1px solid #d1d5db; border-radius: 4px; padding: 4px; }",
    "QLineEdit:focus, QPlainTextEdit:focus, QComboBox:focus { border: 1px solid #93c5fd; }",
    "QPushButton { background-color: #f8fafc; border: 1px solid #cbd5e1; border-radius: 6px; padding: 4px 10px; }",
    "QPushButton:hover { background-color: #e5e7eb; }",
    "QPushButton#primaryButton { background-color: #2563eb; color: white; border-color: #1d4ed8; }",
    "QPushButton#primaryButton:disabled { background-color: #9ca3af; border-color: #9ca3af; }",
]


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


class MainWindow(QMainWindow):
    def __init__(self, settings: Settings) -> None:
        super().__init__()
        self.setWindowTitle("Hurler")
        self.resize(1280, 820)
        self.setFont(QFont("Segoe UI", 10))
        self.settings = settings
        self.workspace = Workspace(settings)
        self._active_file: str | None = None
        self._active_environment: str | None = None
        self._saved_content = ""
        self._run_state = RunState.IDLE
        self._setup_ui()
        self._reload_files()
        self._reload_metadata()
        self._reload_environments()

    def _setup_ui(self) -> None:
        self.sidebar = SidebarPanel()
        self.request_panel = RequestEditorPanel()
        self.response_panel = ResponsePanel()

        self.welcome_label = QLabel("Select or create a request to get started")
        self.welcome_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.welcome_label.setStyleSheet("color: #6b7280;")
        self.editor_stack = QStackedWidget()
        self.editor_stack.addWidget(self.welcome_label)
        self.editor_stack.addWidget(self.request_panel)

        right = QSplitter(Qt.Orientation.Vertical)
        right.addWidget(self.editor_stack)
        right.addWidget(self.response_panel)
        right.setStretchFactor(0, 3)
        right.setStretchFactor(1, 2)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.addWidget(self.sidebar)
        splitter.addWidget(right)
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 4)
        self.setCentralWidget(splitter)

        self.controller = WorkspaceController(self.workspace, self.settings, self.response_panel)

        self.sidebar.file_selected.connect(self._on_file_selected)
        self.sidebar.create_file_requested.connect(self._on_create_file)
        self.sidebar.delete_file_requested.connect(self._on_delete_file)
        self.sidebar.rename_file_requested.connect(self._on_rename_file)
        self.sidebar.metadata_changed.connect(self._on_metadata_changed)
        self.sidebar.environment_changed.connect(self._on_environment_changed)
        self.sidebar.env_editor_requested.connect(self._on_open_env_editor)
        self.request_panel.content_changed.connect(self._on_content_changed)
        self.request_panel.save_requested.connect(self._on_save)
        self.request_panel.run_requested.connect(self._on_run)

    # loading

    def _reload_files(self) -> None:
        self.sidebar.set_files(self.workspace.describe_files())

    def _reload_metadata(self) -> None:
        self.sidebar.set_metadata(self.workspace.read_metadata())

    def _reload_environments(self) -> None:
        environments = self.workspace.list_environments()
        if self._active_environment not in environments:
            self._active_environment = None
        self.sidebar.set_environments(environments, self._active_environment)
        self.request_panel.set_environment(self._active_environment)

    def pick_initial_environment(self) -> None:
        environments = self.workspace.list_environments()
        if not environments:
            return
        name, ok = QInputDialog.getItem(self, "Environment", "Choose an environment", environments, 0, False)
        if ok and name:
            self._on_environment_changed(name)
            self.sidebar.set_environments(environments, name)

    # files

    def _is_dirty(self) -> bool:
        return self._active_file is not None and self.request_panel.content() != self._saved_content

    def _on_file_selected(self, name: str) -> None:
        if name == self._active_file:
            return
        if self._is_dirty() and not self._confirm_discard():
            return
        try:
            content = self.workspace.read_file(name)
        except StorageError as exc:
            QMessageBox.warning(self, "Open request", str(exc))
            self._reload_files()
            return
        self._active_file = name
        self._saved_content = content
        self.request_panel.set_file(name, content)
        self.request_panel.set_dirty(False)
        self.response_panel.clear()
        self.sidebar.set_active_file(name)
        self.editor_stack.setCurrentWidget(self.request_panel)

    def _on_create_file(self, name: str) -> None:
        try:
            created = self.workspace.create_file(name)
        except StorageError as exc:
            QMessageBox.warning(self, "New request", str(exc))
            return
        self._reload_files()
        self._on_file_selected(created)

    def _on_delete_file(self, name: str) -> None:
        answer = QMessageBox.question(self, "Delete request", f"Delete \"{name}.hurl\"?")
        if answer != QMessageBox.StandardButton.Yes:
            return
        try:
            self.workspace.delete_file(name)
        except StorageError as exc:
            QMessageBox.warning(self, "Delete request", str(exc))
        if name == self._active_file:
            self._active_file = None
            self._saved_content = ""
            self.response_panel.clear()
            self.editor_stack.setCurrentWidget(self.welcome_label)
        self._reload_files()
        self._reload_metadata()

    def _on_rename_file(self, old_name: str, new_name: str) -> None:
        try:
            renamed = self.workspace.rename_file(old_name, new_name)
        except StorageError as exc:
            QMessageBox.warning(self, "Rename request", str(exc))
            return
        if old_name == self._active_file:
            self._active_file = renamed
            self.request_panel.file_label.setText(f"{renamed}.hurl")
            self.sidebar.set_active_file(renamed)
        self._reload_files()
        self._reload_metadata()

    def _on_metadata_changed(self, metadata) -> None:
        self.workspace.write_metadata(metadata)
        self.sidebar.set_metadata(metadata)

    def _on_content_changed(self, _content: str) -> None:
        self.request_panel.set_dirty(self._is_dirty())

    def _on_save(self) -> bool:
        if self._active_file is None:
            return False
        content = self.request_panel.content()
        try:
            self.workspace.write_file(self._active_file, content)
        except (OSError, StorageError) as exc:
            QMessageBox.warning(self, "Save request", str(exc))
            return False
        self._saved_content = content
        self.request_panel.set_dirty(False)
        self._reload_files()
        return True

    def _confirm_discard(self) -> bool:
        answer = QMessageBox.question(
            self,
            "Unsaved changes",
            f"Save changes to \"{self._active_file}.hurl\"?",
            QMessageBox.StandardButton.Save | QMessageBox.StandardButton.Discard | QMessageBox.StandardButton.Cancel,
        )
        if answer == QMessageBox.StandardButton.Save:
            return self._on_save()
        return answer == QMessageBox.StandardButton.Discard

    # environments

    def _on_environment_changed(self, name: str) -> None:
        self._active_environment = name or None
        self.request_panel.set_environment(self._active_environment)

    def _on_open_env_editor(self) -> None:
        dialog = EnvEditorDialog(self.workspace, self)
        dialog.exec()
        self._reload_environments()

    # running

    def _on_run(self) -> None:
        if self._active_file is None or self.controller.is_running:
            return
        if self._is_dirty() and not self._on_save():
            return
        source_text = self._saved_content
        self._apply_run_state(RunState.RUNNING)
        self.response_panel.show_running()

        def on_finished(result: RunResult) -> None:
            self.response_panel.show_result(result, source_text)
            self._apply_run_state(RunState.SUCCESS if result.success else RunState.ERROR)

        self.controller.run_file_async(self._active_file, self._active_environment, on_finished)

    def _apply_run_state(self, state: RunState) -> None:
        self._run_state = state
        self.request_panel.set_running(state == RunState.RUNNING)

    def closeEvent(self, event) -> None:
        if self._is_dirty() and not self._confirm_discard():
            event.ignore()
            return
        super().closeEvent(event)


def run_app(settings: Settings) -> int:
    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName("Hurler")
    app.setStyleSheet("\n".join(APP_STYLE))
    window = MainWindow(settings)
    window.show()
    window.pick_initial_environment()
    return app.exec()
