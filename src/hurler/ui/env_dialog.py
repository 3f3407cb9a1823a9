from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDialog,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from hurler.storage import StorageError, Workspace
from hurler.ui.widgets import EditableTable


def rows_to_mapping(rows: list) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for key, value in rows:
        if key.strip():
            mapping[key.strip()] = value
    return mapping


class EnvEditorDialog(QDialog):
    """Edit the shared variables and secrets of each environment."""

    def __init__(self, workspace: Workspace, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.workspace = workspace
        self._selected: str | None = None
        self._dirty = False
        self.setWindowTitle("Environments")
        self.resize(640, 520)
        self._setup_ui()
        self._reload_environments()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)

        row = QHBoxLayout()
        self.env_combo = QComboBox()
        self.env_combo.currentIndexChanged.connect(self._on_env_selected)
        new_button = QPushButton("New")
        new_button.clicked.connect(self._on_new_clicked)
        self.delete_button = QPushButton("Delete")
        self.delete_button.clicked.connect(self._on_delete_clicked)
        row.addWidget(self.env_combo, 1)
        row.addWidget(new_button)
        row.addWidget(self.delete_button)
        layout.addLayout(row)

        variables_row = QHBoxLayout()
        variables_row.addWidget(QLabel("Variables (committed with the collection)"))
        variables_row.addStretch(1)
        add_variable = QPushButton("Add")
        add_variable.clicked.connect(lambda: self.variables_table.add_row())
        variables_row.addWidget(add_variable)
        layout.addLayout(variables_row)
        self.variables_table = EditableTable(["Name", "Value"])
        self.variables_table.changed.connect(self._on_changed)
        layout.addWidget(self.variables_table, 1)

        secrets_row = QHBoxLayout()
        secrets_row.addWidget(QLabel("Secrets (kept in a separate .secrets.env file)"))
        secrets_row.addStretch(1)
        self.show_secrets = QCheckBox("Show values")
        self.show_secrets.toggled.connect(lambda checked: self.secrets_table.set_masked(not checked))
        secrets_row.addWidget(self.show_secrets)
        add_secret = QPushButton("Add")
        add_secret.clicked.connect(lambda: self.secrets_table.add_row())
        secrets_row.addWidget(add_secret)
        layout.addLayout(secrets_row)
        self.secrets_table = EditableTable(["Name", "Value"])
        self.secrets_table.set_masked(True)
        self.secrets_table.changed.connect(self._on_changed)
        layout.addWidget(self.secrets_table, 1)

        button_row = QHBoxLayout()
        button_row.addStretch(1)
        self.save_button = QPushButton("Save")
        self.save_button.clicked.connect(self._on_save_clicked)
        close_button = QPushButton("Close")
        close_button.clicked.connect(self.accept)
        button_row.addWidget(self.save_button)
        button_row.addWidget(close_button)
        layout.addLayout(button_row)

    def _reload_environments(self, select: str | None = None) -> None:
        names = self.workspace.list_environments()
        self.env_combo.blockSignals(True)
        self.env_combo.clear()
        self.env_combo.addItems(names)
        self.env_combo.blockSignals(False)
        if select in names:
            self.env_combo.setCurrentText(select)
        self._on_env_selected()

    def _on_env_selected(self) -> None:
        name = self.env_combo.currentText() or None
        self._selected = name
        variables: dict[str, str] = {}
        secrets: dict[str, str] = {}
        if name:
            try:
                environment = self.workspace.read_environment(name)
                variables, secrets = environment.variables, environment.secrets
            except StorageError as exc:
                QMessageBox.warning(self, "Environment", str(exc))
        self.variables_table.set_rows(list(variables.items()))
        self.secrets_table.set_rows(list(secrets.items()))
        self.delete_button.setEnabled(name is not None)
        self._set_dirty(False)

    def _on_changed(self) -> None:
        self._set_dirty(self._selected is not None)

    def _set_dirty(self, dirty: bool) -> None:
        self._dirty = dirty
        self.save_button.setEnabled(dirty)

    def _on_new_clicked(self) -> None:
        name, ok = QInputDialog.getText(self, "New environment", "Environment name")
        if not ok or not name.strip():
            return
        try:
            created = self.workspace.create_environment(name)
        except StorageError as exc:
            QMessageBox.warning(self, "New environment", str(exc))
            return
        self._reload_environments(created)

    def _on_delete_clicked(self) -> None:
        if not self._selected:
            return
        answer = QMessageBox.question(self, "Delete environment", f"Delete environment \"{self._selected}\"?")
        if answer != QMessageBox.StandardButton.Yes:
            return
        try:
            self.workspace.delete_environment(self._selected)
        except StorageError as exc:
            QMessageBox.warning(self, "Delete environment", str(exc))
        self._reload_environments()

    def _on_save_clicked(self) -> None:
        if not self._selected:
            return
        self.workspace.update_environment(
            self._selected,
            rows_to_mapping(self.variables_table.get_rows()),
            rows_to_mapping(self.secrets_table.get_rows()),
        )
        self._set_dirty(False)
