from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QAbstractItemView,
    QFrame,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QTableWidget,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

TABLE_STYLE = (
    "QTableWidget { background: #f8fafc; gridline-color: #e5e7eb; }"
    "QLineEdit { background: #ffffff; color: #111827; border: 1px solid #e5e7eb; "
    "border-radius: 4px; padding: 2px 4px; font-family: Consolas, \"Courier New\", monospace; }"
    "QLineEdit:focus { border-color: #93c5fd; }"
)


class EditableTable(QTableWidget):
    """Rows of line edits with a delete button per row.

    Rows are returned verbatim, blank ones included, so an empty row added by
    the user survives a serialize/parse cycle while it is being filled in.
    """

    changed = Signal()

    def __init__(self, columns: list[str], placeholders: list[str] | None = None, parent: QWidget | None = None) -> None:
        super().__init__(0, len(columns) + 1, parent)
        self._columns = columns
        self._placeholders = placeholders or columns
        self._masked = False
        self._loading = False
        self.setHorizontalHeaderLabels(columns + [""])
        self.verticalHeader().setVisible(False)
        self.setSelectionMode(QAbstractItemView.SelectionMode.NoSelection)
        self.setStyleSheet(TABLE_STYLE)
        header = self.horizontalHeader()
        for index in range(len(columns)):
            header.setSectionResizeMode(index, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(len(columns), QHeaderView.ResizeMode.Fixed)
        self.setColumnWidth(len(columns), 32)

    def add_row(self, values: tuple | list | None = None) -> None:
        row = self.rowCount()
        self.insertRow(row)
        values = list(values or [])
        for column in range(len(self._columns)):
            edit = QLineEdit()
            edit.setPlaceholderText(self._placeholders[column])
            edit.setText(values[column] if column < len(values) else "")
            if self._masked and column == len(self._columns) - 1:
                edit.setEchoMode(QLineEdit.EchoMode.Password)
            edit.textChanged.connect(self._notify_changed)
            self.setCellWidget(row, column, edit)
        delete_button = QToolButton()
        delete_button.setText("✕")
        delete_button.setToolTip("Remove row")
        delete_button.clicked.connect(self._on_delete_clicked)
        self.setCellWidget(row, len(self._columns), delete_button)
        self._notify_changed()

    def set_rows(self, rows: list) -> None:
        self._loading = True
        try:
            self.setRowCount(0)
            for values in rows:
                self.add_row(values)
        finally:
            self._loading = False

    def get_rows(self) -> list[tuple[str, ...]]:
        rows = []
        for row in range(self.rowCount()):
            values = []
            for column in range(len(self._columns)):
                widget = self.cellWidget(row, column)
                values.append(widget.text() if isinstance(widget, QLineEdit) else "")
            rows.append(tuple(values))
        return rows

    def set_masked(self, masked: bool) -> None:
        self._masked = masked
        mode = QLineEdit.EchoMode.Password if masked else QLineEdit.EchoMode.Normal
        for row in range(self.rowCount()):
            widget = self.cellWidget(row, len(self._columns) - 1)
            if isinstance(widget, QLineEdit):
                widget.setEchoMode(mode)

    def _row_for_widget(self, widget: QWidget) -> int:
        for row in range(self.rowCount()):
            if self.cellWidget(row, len(self._columns)) is widget:
                return row
        return -1

    def _on_delete_clicked(self) -> None:
        row = self._row_for_widget(self.sender())
        if row < 0:
            return
        self.removeRow(row)
        self._notify_changed()

    def _notify_changed(self) -> None:
        if not self._loading:
            self.changed.emit()


class AssertionResultCard(QFrame):
    def __init__(
        self,
        *,
        title: str,
        success: bool,
        detail_lines: list[str],
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        border = "#e5e7eb" if success else "#fecaca"
        background = "#f0fdf4" if success else "#fef2f2"
        self.setStyleSheet(
            "QFrame { background: %s; border: 1px solid %s; border-radius: 6px; }"
            % (background, border)
        )

        header = QHBoxLayout()
        header.setContentsMargins(8, 6, 8, 2)
        header.setSpacing(6)
        status_label = QLabel("PASS" if success else "FAIL")
        status_label.setStyleSheet(f"color: {'#16a34a' if success else '#dc2626'}; font-weight: 600; border: none;")
        title_label = QLabel(title)
        title_label.setWordWrap(True)
        title_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        title_label.setStyleSheet("color: #111827; font-family: Consolas, monospace; border: none;")
        header.addWidget(status_label)
        header.addWidget(title_label, 1)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 4)
        layout.setSpacing(2)
        layout.addLayout(header)
        if detail_lines:
            detail_label = QLabel("\n".join(detail_lines))
            detail_label.setContentsMargins(8, 0, 8, 4)
            detail_label.setWordWrap(True)
            detail_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
            detail_label.setStyleSheet("color: #991b1b; border: none;" if not success else "color: #6b7280; border: none;")
            layout.addWidget(detail_label)
