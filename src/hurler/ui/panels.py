import json
import logging
from datetime import datetime

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QBrush, QColor, QFontDatabase, QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QComboBox,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QMenu,
    QPlainTextEdit,
    QPushButton,
    QScrollArea,
    QStackedWidget,
    QTabWidget,
    QTableWidget,
    QTableWidgetItem,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
    QHeaderView,
    QFrame,
)

from hurler.hurl_document import Header, RequestDocument, find_orphan_lines, parse_hurl, serialize_hurl
from hurler.jsonpath_probe import jsonpath_query, probe_jsonpath
from hurler.metadata import Metadata
from hurler.result_extractor import extract_response_info, format_body
from hurler.result_summary import build_summary
from hurler.runner import RunResult
from hurler.ui.widgets import AssertionResultCard, EditableTable

METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]
BADGE_STYLE = "padding: 2px 6px; border-radius: 6px; font-weight: 600;"
NO_ENVIRONMENT = "No environment"


def _monospace_font():
    return QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont)


def status_style(status: int) -> str:
    if 200 <= status < 300:
        return "color: #15803d; background: #dcfce7;"
    if 300 <= status < 400:
        return "color: #a16207; background: #fef9c3;"
    if 400 <= status < 500:
        return "color: #c2410c; background: #ffedd5;"
    return "color: #b91c1c; background: #fee2e2;"


class SidebarPanel(QWidget):
    _KIND_ROLE = Qt.ItemDataRole.UserRole
    _KEY_ROLE = Qt.ItemDataRole.UserRole + 1

    file_selected = Signal(str)
    create_file_requested = Signal(str)
    delete_file_requested = Signal(str)
    rename_file_requested = Signal(str, str)
    metadata_changed = Signal(object)
    environment_changed = Signal(str)
    env_editor_requested = Signal()

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._files: list[dict] = []
        self._metadata = Metadata()
        self._active_file: str | None = None
        self._loading = False
        self._setup_ui()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(8)

        title = QLabel("Hurler")
        title.setStyleSheet("font-size: 13pt; font-weight: 600; color: #111827;")
        layout.addWidget(title)

        env_row = QHBoxLayout()
        self.env_combo = QComboBox()
        self.env_combo.currentIndexChanged.connect(self._on_env_changed)
        env_button = QPushButton("Edit")
        env_button.setToolTip("Edit environments")
        env_button.clicked.connect(self.env_editor_requested.emit)
        env_row.addWidget(self.env_combo, 1)
        env_row.addWidget(env_button)
        layout.addLayout(env_row)

        button_row = QHBoxLayout()
        new_request_button = QPushButton("New request")
        new_request_button.clicked.connect(self._on_add_request_clicked)
        new_section_button = QPushButton("New section")
        new_section_button.clicked.connect(self._on_add_section_clicked)
        button_row.addWidget(new_request_button)
        button_row.addWidget(new_section_button)
        layout.addLayout(button_row)

        self.tree_widget = QTreeWidget()
        self.tree_widget.setHeaderHidden(True)
        self.tree_widget.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.tree_widget.customContextMenuRequested.connect(self._on_context_menu)
        self.tree_widget.itemClicked.connect(self._on_item_clicked)
        layout.addWidget(self.tree_widget, 1)

        self.empty_label = QLabel("No requests yet. Click \"New request\" to create one.")
        self.empty_label.setWordWrap(True)
        self.empty_label.setStyleSheet("color: #6b7280;")
        layout.addWidget(self.empty_label)

    # data

    def set_files(self, files: list[dict]) -> None:
        self._files = list(files)
        self._rebuild_tree()

    def set_metadata(self, metadata: Metadata) -> None:
        self._metadata = metadata
        self._rebuild_tree()

    def set_active_file(self, name: str | None) -> None:
        self._active_file = name
        self._rebuild_tree()

    def set_environments(self, environments: list[str], active: str | None) -> None:
        self._loading = True
        try:
            self.env_combo.clear()
            self.env_combo.addItem(NO_ENVIRONMENT, "")
            for name in environments:
                self.env_combo.addItem(name, name)
            index = self.env_combo.findData(active or "")
            self.env_combo.setCurrentIndex(max(index, 0))
        finally:
            self._loading = False

    def _rebuild_tree(self) -> None:
        self.tree_widget.clear()
        methods = {item["name"]: item.get("method") for item in self._files}
        sections, ungrouped = self._metadata.group_files(list(methods))
        for section, names in sections:
            section_item = QTreeWidgetItem([f"{section.name} ({len(names)})"])
            section_item.setData(0, self._KIND_ROLE, "section")
            section_item.setData(0, self._KEY_ROLE, section.id)
            font = section_item.font(0)
            font.setBold(True)
            section_item.setFont(0, font)
            self.tree_widget.addTopLevelItem(section_item)
            for name in names:
                section_item.addChild(self._build_file_item(name, methods[name]))
            section_item.setExpanded(True)
        for name in ungrouped:
            self.tree_widget.addTopLevelItem(self._build_file_item(name, methods[name]))
        self.empty_label.setVisible(not self._files)

    def _build_file_item(self, name: str, method: str | None) -> QTreeWidgetItem:
        item = QTreeWidgetItem([f"{method or '?':<7} {name}"])
        item.setData(0, self._KIND_ROLE, "file")
        item.setData(0, self._KEY_ROLE, name)
        item.setFont(0, _monospace_font())
        if name == self._active_file:
            item.setBackground(0, QBrush(QColor("#e5e7eb")))
        return item

    # interactions

    def _on_env_changed(self) -> None:
        if self._loading:
            return
        self.environment_changed.emit(self.env_combo.currentData() or "")

    def _on_item_clicked(self, item: QTreeWidgetItem, _column: int) -> None:
        if item.data(0, self._KIND_ROLE) == "file":
            self.file_selected.emit(item.data(0, self._KEY_ROLE))

    def _on_add_request_clicked(self) -> None:
        name, ok = QInputDialog.getText(self, "New request", "Request name")
        if ok and name.strip():
            self.create_file_requested.emit(name.strip())

    def _on_add_section_clicked(self) -> None:
        metadata, section = self._metadata.add_section()
        name, ok = QInputDialog.getText(self, "New section", "Section name", text=section.name)
        if ok and name.strip():
            metadata = metadata.rename_section(section.id, name)
        self.metadata_changed.emit(metadata)

    def _on_context_menu(self, pos) -> None:
        item = self.tree_widget.itemAt(pos)
        if item is None:
            return
        kind = item.data(0, self._KIND_ROLE)
        key = item.data(0, self._KEY_ROLE)
        menu = QMenu(self)
        if kind == "file":
            menu.addAction("Rename", lambda: self._rename_file(key))
            move_menu = menu.addMenu("Move to section")
            move_menu.addAction("No section", lambda: self.metadata_changed.emit(self._metadata.move_file(key, None)))
            for section in self._metadata.sections:
                move_menu.addAction(
                    section.name,
                    lambda section_id=section.id: self.metadata_changed.emit(self._metadata.move_file(key, section_id)),
                )
            menu.addSeparator()
            menu.addAction("Delete", lambda: self.delete_file_requested.emit(key))
        else:
            menu.addAction("Rename section", lambda: self._rename_section(key))
            menu.addAction("Delete section", lambda: self.metadata_changed.emit(self._metadata.delete_section(key)))
        menu.exec(self.tree_widget.viewport().mapToGlobal(pos))

    def _rename_file(self, name: str) -> None:
        new_name, ok = QInputDialog.getText(self, "Rename request", "New name", text=name)
        if ok and new_name.strip() and new_name.strip() != name:
            self.rename_file_requested.emit(name, new_name.strip())

    def _rename_section(self, section_id: str) -> None:
        section = self._metadata.section(section_id)
        if section is None:
            return
        name, ok = QInputDialog.getText(self, "Rename section", "Section name", text=section.name)
        if ok:
            self.metadata_changed.emit(self._metadata.rename_section(section_id, name))


class VisualEditor(QWidget):
    content_changed = Signal(str)

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._document = RequestDocument()
        self._loading = False
        self._setup_ui()

    def _setup_ui(self) -> None:
        content = QWidget()
        layout = QVBoxLayout(content)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(8)

        row = QHBoxLayout()
        self.method_combo = QComboBox()
        self.method_combo.setEditable(True)
        self.method_combo.addItems(METHODS)
        self.method_combo.currentTextChanged.connect(self._on_changed)
        self.url_input = QLineEdit()
        self.url_input.setPlaceholderText("https://example.com/api")
        self.url_input.setFont(_monospace_font())
        self.url_input.textChanged.connect(self._on_changed)
        row.addWidget(self.method_combo)
        row.addWidget(self.url_input, 1)
        layout.addLayout(row)

        self.headers_table = EditableTable(["Header", "Value"], ["Header name", "Value"])
        self.headers_table.changed.connect(self._on_changed)
        layout.addLayout(self._section_title("Headers", self.headers_table.add_row))
        layout.addWidget(self.headers_table)

        layout.addWidget(QLabel("Body"))
        self.body_edit = QPlainTextEdit()
        self.body_edit.setFont(_monospace_font())
        self.body_edit.setPlaceholderText('{"key": "value"}')
        self.body_edit.textChanged.connect(self._on_changed)
        layout.addWidget(self.body_edit)

        status_row = QHBoxLayout()
        status_row.addWidget(QLabel("Expected status"))
        self.status_input = QLineEdit()
        self.status_input.setPlaceholderText("*")
        self.status_input.setMaximumWidth(120)
        self.status_input.textChanged.connect(self._on_changed)
        status_row.addWidget(self.status_input)
        status_row.addStretch(1)
        layout.addLayout(status_row)

        self.captures_table = EditableTable(["Capture"], ['name: jsonpath "$.id"'])
        self.captures_table.changed.connect(self._on_changed)
        layout.addLayout(self._section_title("Captures", self.captures_table.add_row))
        layout.addWidget(self.captures_table)

        self.asserts_table = EditableTable(["Assert"], ['jsonpath "$.id" exists'])
        self.asserts_table.changed.connect(self._on_changed)
        layout.addLayout(self._section_title("Asserts", self.asserts_table.add_row))
        layout.addWidget(self.asserts_table)

        scroll_area = QScrollArea()
        scroll_area.setWidgetResizable(True)
        scroll_area.setFrameShape(QFrame.Shape.NoFrame)
        scroll_area.setWidget(content)
        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.addWidget(scroll_area)

    def _section_title(self, title: str, on_add) -> QHBoxLayout:
        row = QHBoxLayout()
        label = QLabel(title)
        label.setStyleSheet("font-weight: 600; color: #374151;")
        add_button = QPushButton("Add")
        add_button.clicked.connect(lambda: on_add())
        row.addWidget(label)
        row.addStretch(1)
        row.addWidget(add_button)
        return row

    def set_content(self, text: str) -> None:
        document = parse_hurl(text)
        self._document = document
        self._loading = True
        try:
            if self.method_combo.findText(document.method) < 0:
                self.method_combo.addItem(document.method)
            self.method_combo.setCurrentText(document.method)
            self.url_input.setText(document.url)
            self.headers_table.set_rows([(h.key, h.value) for h in document.headers])
            self.body_edit.setPlainText(document.body)
            self.status_input.setText(document.response_status)
            self.captures_table.set_rows([(line,) for line in document.captures])
            self.asserts_table.set_rows([(line,) for line in document.asserts])
        finally:
            self._loading = False

    def get_document(self) -> RequestDocument:
        return RequestDocument(
            method=self.method_combo.currentText().strip().upper() or "GET",
            url=self.url_input.text(),
            headers=[Header(key, value) for key, value in self.headers_table.get_rows()],
            body=self.body_edit.toPlainText(),
            response_status=self.status_input.text().strip(),
            captures=[row[0] for row in self.captures_table.get_rows()],
            asserts=[row[0] for row in self.asserts_table.get_rows()],
        )

    def _on_changed(self) -> None:
        if self._loading:
            return
        self._document = self.get_document()
        self.content_changed.emit(serialize_hurl(self._document))


class RequestEditorPanel(QWidget):
    content_changed = Signal(str)
    run_requested = Signal()
    save_requested = Signal()

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._loading = False
        self._setup_ui()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        row = QHBoxLayout()
        self.file_label = QLabel("")
        self.file_label.setStyleSheet("font-weight: 600;")
        self.dirty_label = QLabel("modified")
        self.dirty_label.setStyleSheet(f"color: #92400e; background: #fef3c7; {BADGE_STYLE}")
        self.env_label = QLabel("")
        self.env_label.setStyleSheet(f"color: #1e3a8a; background: #dbeafe; {BADGE_STYLE}")
        self.save_button = QPushButton("Save")
        self.save_button.setToolTip("Save (Ctrl + S)")
        self.save_button.clicked.connect(self.save_requested.emit)
        self.run_button = QPushButton("Run")
        self.run_button.setObjectName("primaryButton")
        self.run_button.setToolTip("Run (Ctrl + Enter)")
        self.run_button.clicked.connect(self.run_requested.emit)
        row.addWidget(self.file_label, 1)
        row.addWidget(self.dirty_label)
        row.addWidget(self.env_label)
        row.addWidget(self.save_button)
        row.addWidget(self.run_button)
        layout.addLayout(row)

        self.tabs = QTabWidget()
        self.raw_edit = QPlainTextEdit()
        self.raw_edit.setFont(_monospace_font())
        self.raw_edit.textChanged.connect(self._on_raw_changed)
        self.visual_editor = VisualEditor()
        self.visual_editor.content_changed.connect(self._on_visual_changed)
        self.tabs.addTab(self.raw_edit, "Raw")
        self.tabs.addTab(self.visual_editor, "Visual")
        self.tabs.currentChanged.connect(self._on_tab_changed)
        layout.addWidget(self.tabs, 1)

        self.lint_label = QLabel("")
        self.lint_label.setWordWrap(True)
        self.lint_label.setStyleSheet("color: #92400e;")
        layout.addWidget(self.lint_label)

        run_shortcut = QShortcut(QKeySequence("Ctrl+Return"), self)
        run_shortcut.activated.connect(self.run_requested.emit)
        save_shortcut = QShortcut(QKeySequence("Ctrl+S"), self)
        save_shortcut.activated.connect(self.save_requested.emit)
        self.set_dirty(False)
        self.set_environment(None)

    def set_file(self, name: str, content: str) -> None:
        self.file_label.setText(f"{name}.hurl")
        self.set_content(content)

    def set_content(self, content: str) -> None:
        self._loading = True
        try:
            self.raw_edit.setPlainText(content)
            if self.tabs.currentWidget() is self.visual_editor:
                self.visual_editor.set_content(content)
        finally:
            self._loading = False
        self._update_lint(content)

    def content(self) -> str:
        return self.raw_edit.toPlainText()

    def set_dirty(self, dirty: bool) -> None:
        self.dirty_label.setVisible(dirty)
        self.save_button.setEnabled(dirty)

    def set_environment(self, name: str | None) -> None:
        self.env_label.setText(name or "")
        self.env_label.setVisible(bool(name))

    def set_running(self, running: bool) -> None:
        self.run_button.setEnabled(not running)
        self.run_button.setText("Running..." if running else "Run")

    def _on_tab_changed(self, _index: int) -> None:
        if self.tabs.currentWidget() is self.visual_editor:
            self.visual_editor.set_content(self.raw_edit.toPlainText())

    def _on_raw_changed(self) -> None:
        if self._loading:
            return
        text = self.raw_edit.toPlainText()
        self._update_lint(text)
        self.content_changed.emit(text)

    def _on_visual_changed(self, text: str) -> None:
        self._loading = True
        try:
            self.raw_edit.setPlainText(text)
        finally:
            self._loading = False
        self._update_lint(text)
        self.content_changed.emit(text)

    def _update_lint(self, text: str) -> None:
        orphans = find_orphan_lines(text)
        if not orphans:
            self.lint_label.setText("")
            return
        numbers = ", ".join(str(number) for number, _ in orphans[:5])
        self.lint_label.setText(
            f"Ignored by the visual editor (outside [Captures]/[Asserts]): line {numbers}"
        )


class ResponsePanel(QWidget):
    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._tab_index: dict[str, int] = {}
        self._setup_ui()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        row = QHBoxLayout()
        title = QLabel("Response")
        title.setStyleSheet("font-weight: 600;")
        self.status_value = QLabel("")
        self.error_value = QLabel("Error")
        self.error_value.setStyleSheet(f"color: #b91c1c; background: #fee2e2; {BADGE_STYLE}")
        self.duration_value = QLabel("")
        self.duration_value.setStyleSheet("color: #6b7280;")
        row.addWidget(title)
        row.addWidget(self.status_value)
        row.addWidget(self.error_value)
        row.addStretch(1)
        row.addWidget(self.duration_value)
        layout.addLayout(row)

        self.stack = QStackedWidget()
        self.placeholder = QLabel("Run a request to see the response")
        self.placeholder.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.placeholder.setStyleSheet("color: #6b7280;")
        self.result_tabs = QTabWidget()
        self.stack.addWidget(self.placeholder)
        self.stack.addWidget(self.result_tabs)
        layout.addWidget(self.stack, 1)

        self.body_text = self._read_only_text()
        self.headers_table = self._name_value_table()
        self.captures_table = self._name_value_table()
        self.asserts_container = QWidget()
        self.asserts_layout = QVBoxLayout(self.asserts_container)
        self.asserts_layout.setContentsMargins(4, 4, 4, 4)
        self.asserts_layout.setSpacing(4)
        self.asserts_layout.addStretch(1)
        asserts_scroll = QScrollArea()
        asserts_scroll.setWidgetResizable(True)
        asserts_scroll.setFrameShape(QFrame.Shape.NoFrame)
        asserts_scroll.setWidget(self.asserts_container)
        self.verbose_text = self._read_only_text()
        self.logs_view = self._read_only_text()

        for key, widget, label in (
            ("body", self.body_text, "Body"),
            ("headers", self.headers_table, "Headers"),
            ("captures", self.captures_table, "Captures"),
            ("asserts", asserts_scroll, "Asserts"),
            ("verbose", self.verbose_text, "Verbose"),
            ("logs", self.logs_view, "Log"),
        ):
            self._tab_index[key] = self.result_tabs.addTab(widget, label)
        self.clear()

    def _read_only_text(self) -> QPlainTextEdit:
        view = QPlainTextEdit()
        view.setReadOnly(True)
        view.setFont(_monospace_font())
        return view

    def _name_value_table(self) -> QTableWidget:
        table = QTableWidget(0, 2)
        table.setHorizontalHeaderLabels(["Name", "Value"])
        table.verticalHeader().setVisible(False)
        table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        table.horizontalHeader().setSectionResizeMode(0, QHeaderView.ResizeMode.ResizeToContents)
        table.horizontalHeader().setSectionResizeMode(1, QHeaderView.ResizeMode.Stretch)
        return table

    def clear(self) -> None:
        self.status_value.setVisible(False)
        self.error_value.setVisible(False)
        self.duration_value.setText("")
        self.placeholder.setText("Run a request to see the response")
        self.stack.setCurrentWidget(self.placeholder)

    def show_running(self) -> None:
        self.clear()
        self.placeholder.setText("Running request...")

    def show_result(self, result: RunResult, source_text: str) -> None:
        view = extract_response_info(result, source_text)
        if view.status > 0:
            self.status_value.setText(str(view.status))
            self.status_value.setStyleSheet(f"{status_style(view.status)} {BADGE_STYLE}")
            self.status_value.setVisible(True)
        self.error_value.setToolTip(result.error_message)
        self.error_value.setVisible(not result.success)
        self.duration_value.setText(f"{result.duration}ms")

        self.body_text.setPlainText(format_body(view.body) or "(empty body)")
        self._fill_table(self.headers_table, view.headers)
        self._fill_table(self.captures_table, [(c.name, self._format_value(c.value)) for c in view.captures])
        self.verbose_text.setPlainText(result.stderr or "(no verbose output)")
        self.result_tabs.setTabText(self._tab_index["headers"], f"Headers ({len(view.headers)})" if view.headers else "Headers")
        self.result_tabs.setTabVisible(self._tab_index["captures"], bool(view.captures))
        self._render_asserts(view)
        self.stack.setCurrentWidget(self.result_tabs)

        summary = build_summary(view.asserts)
        if summary["fail"]:
            self.append_log(f"assertions_failed={summary['fail']}")
            self.result_tabs.setCurrentIndex(self._tab_index["asserts"])
        else:
            if summary["total"]:
                self.append_log("assertions_all_passed")
            self.result_tabs.setCurrentIndex(self._tab_index["body"])

    def _render_asserts(self, view) -> None:
        while self.asserts_layout.count() > 1:
            item = self.asserts_layout.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()
        summary = build_summary(view.asserts)
        for position, item in enumerate(view.asserts):
            detail_lines = []
            if item.actual is not None:
                detail_lines.append(f"actual: {item.actual}")
                detail_lines.append(f"expected: {item.expected}")
            elif item.message and not item.success:
                detail_lines.append(item.message)
            query = jsonpath_query(item.label)
            if query and not item.success:
                found = probe_jsonpath(view.body, query)
                if found:
                    detail_lines.append(f"{query} -> {', '.join(self._format_value(v) for v in found)}")
            card = AssertionResultCard(title=item.label, success=item.success, detail_lines=detail_lines)
            self.asserts_layout.insertWidget(position, card)
        index = self._tab_index["asserts"]
        self.result_tabs.setTabVisible(index, bool(summary["total"]))
        if summary["fail"]:
            self.result_tabs.setTabText(index, f"Asserts ({summary['fail']} failed)")
        else:
            self.result_tabs.setTabText(index, f"Asserts ({summary['pass']} passed)")

    def _fill_table(self, table: QTableWidget, rows: list) -> None:
        table.setRowCount(0)
        for name, value in rows:
            row = table.rowCount()
            table.insertRow(row)
            table.setItem(row, 0, QTableWidgetItem(name))
            table.setItem(row, 1, QTableWidgetItem(value))

    def _format_value(self, value: object) -> str:
        if isinstance(value, (dict, list, bool)) or value is None:
            return json.dumps(value, ensure_ascii=False)
        return str(value)

    def append_log(self, message: str) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S")
        self.logs_view.appendPlainText(f"[{timestamp}] {message}")
        logging.getLogger("hurler").info(message)
