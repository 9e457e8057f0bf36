# src/quickoption/gui/main_window.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QAbstractItemDelegate,
    QAbstractItemView,
    QFileDialog,
    QGridLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMenu,
    QMessageBox,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from quickoption import settings_store
from quickoption.errors import FieldFormatError, OptionExportError, OptionImportError
from quickoption.models.option_record import OPTION_COLUMNS, OptionRecord
from quickoption.option_document import OptionDocument, build_target_path

logger = logging.getLogger(__name__)

APP_TITLE = "Quick Option Import/Export"

# 数値系の列は右寄せ
_RIGHT_ALIGNED_KINDS = {"double", "long"}


class OptionGrid(QTableWidget):
    """オプション一覧のグリッド。開いているセルエディタを確定できるようにしたもの。"""

    def commit_pending_edit(self) -> None:
        if self.state() != QAbstractItemView.State.EditingState:
            return

        # 編集中のセルのエディタ（フォーカスの有無に関係なく取れる）
        editor = self.indexWidget(self.currentIndex())
        if editor is None:
            return

        # エディタの値をモデルへ書き戻してから閉じる（itemChanged が飛ぶ）
        self.commitData(editor)
        self.closeEditor(editor, QAbstractItemDelegate.EndEditHint.NoHint)


class MainWindow(QMainWindow):
    """
    Quick Option Import/Export のメインウィンドウ。

    画面は薄い殻で、取り込み・書き出し・行の追加削除・値の検証は
    すべて OptionDocument / OptionRecord 側で行う。
    """

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle(APP_TITLE)
        self.resize(1180, 760)
        self.setMinimumSize(980, 620)

        self.document = OptionDocument()
        self.document.subscribe(self._on_document_event)

        # グリッドをコードから書き換えている間は itemChanged を無視する
        self._updating_grid = False

        self._create_central_widgets()
        self._create_actions()
        self._create_menus()
        self._connect_signals()

        self.setAcceptDrops(True)
        self.statusBar().showMessage("Import a JSON options file (Ctrl+O)")

        self._new_file()

    # ─────────────────────────────
    # UI 構築
    # ─────────────────────────────
    def _create_central_widgets(self) -> None:
        self.grid = OptionGrid(self)
        self.grid.setColumnCount(len(OPTION_COLUMNS))
        self.grid.setHorizontalHeaderLabels([col.header for col in OPTION_COLUMNS])
        self.grid.setSelectionBehavior(QTableWidget.SelectRows)
        self.grid.setSelectionMode(QTableWidget.ExtendedSelection)
        self.grid.setEditTriggers(
            QTableWidget.DoubleClicked | QTableWidget.EditKeyPressed | QTableWidget.AnyKeyPressed
        )
        self.grid.horizontalHeader().setStretchLastSection(True)
        self.grid.setContextMenuPolicy(Qt.CustomContextMenu)

        # 下部バー
        self.loaded_label = QLabel("Loaded: 0 options", self)
        self.file_name_edit = QLineEdit(self)
        self.file_location_edit = QLineEdit(self)
        self.file_location_edit.setReadOnly(True)

        self.btn_browse = QPushButton("...", self)
        self.btn_import = QPushButton("Import", self)
        self.btn_save_as = QPushButton("Save As", self)
        self.btn_save = QPushButton("Save", self)
        for btn in (self.btn_import, self.btn_save_as, self.btn_save):
            btn.setMinimumWidth(110)

        bottom = QGridLayout()
        bottom.addWidget(self.loaded_label, 0, 0)
        bottom.addWidget(QLabel("File Name", self), 0, 1)
        bottom.addWidget(self.file_name_edit, 0, 2)
        bottom.addWidget(self.btn_import, 0, 3)
        bottom.addWidget(self.btn_save_as, 0, 4)
        bottom.addWidget(self.btn_save, 0, 5)
        bottom.addWidget(QLabel("File Location", self), 1, 0)
        bottom.addWidget(self.file_location_edit, 1, 1, 1, 5)
        bottom.addWidget(self.btn_browse, 1, 6)
        bottom.setColumnStretch(2, 1)

        central = QWidget(self)
        root = QVBoxLayout(central)
        root.addWidget(self.grid)
        root.addLayout(bottom)
        self.setCentralWidget(central)

    def _create_actions(self) -> None:
        self.new_action = QAction("New", self)
        self.new_action.setShortcut(QKeySequence.New)
        self.new_action.triggered.connect(self._on_new)

        self.import_action = QAction("Import...", self)
        self.import_action.setShortcut(QKeySequence.Open)
        self.import_action.triggered.connect(lambda: self.import_json())

        self.save_action = QAction("Save", self)
        self.save_action.setShortcut(QKeySequence.Save)
        self.save_action.triggered.connect(self._save)

        self.save_as_action = QAction("Save As", self)
        self.save_as_action.setShortcut(QKeySequence.SaveAs)
        self.save_as_action.triggered.connect(self._save_as)

        self.exit_action = QAction("Exit", self)
        self.exit_action.triggered.connect(self.close)

        self.add_row_action = QAction("Add Row", self)
        self.add_row_action.setShortcut(QKeySequence("Ctrl+Shift+N"))
        self.add_row_action.triggered.connect(self._add_row)

        self.delete_rows_action = QAction("Delete Row", self)
        self.delete_rows_action.setShortcut(QKeySequence.Delete)
        self.delete_rows_action.triggered.connect(self._delete_selected_rows)

    def _create_menus(self) -> None:
        file_menu = self.menuBar().addMenu("&File")
        file_menu.addAction(self.new_action)
        file_menu.addAction(self.import_action)
        self.recent_menu = file_menu.addMenu("Recent Files")
        self.recent_menu.aboutToShow.connect(self._populate_recent_menu)
        file_menu.addSeparator()
        file_menu.addAction(self.save_action)
        file_menu.addAction(self.save_as_action)
        file_menu.addSeparator()
        file_menu.addAction(self.exit_action)

        edit_menu = self.menuBar().addMenu("&Edit")
        edit_menu.addAction(self.add_row_action)
        edit_menu.addAction(self.delete_rows_action)

    def _connect_signals(self) -> None:
        self.btn_import.clicked.connect(lambda: self.import_json())
        self.btn_save.clicked.connect(self._save)
        self.btn_save_as.clicked.connect(self._save_as)
        self.btn_browse.clicked.connect(self._browse_for_folder)
        self.grid.itemChanged.connect(self._on_item_changed)
        self.grid.customContextMenuRequested.connect(self._on_grid_context_menu)

    # ─────────────────────────────
    # グリッド
    # ─────────────────────────────
    def _make_item(self, record: OptionRecord, col_index: int) -> QTableWidgetItem:
        col = OPTION_COLUMNS[col_index]
        item = QTableWidgetItem()

        if col.kind == "bool":
            item.setFlags((item.flags() | Qt.ItemIsUserCheckable) & ~Qt.ItemIsEditable)
            item.setCheckState(Qt.Checked if record.boolean_value else Qt.Unchecked)
        else:
            item.setText(record.display_text(col.attr))
            if col.kind in _RIGHT_ALIGNED_KINDS:
                item.setTextAlignment(Qt.AlignRight | Qt.AlignVCenter)
        return item

    def _fill_row(self, row: int, record: OptionRecord) -> None:
        was_updating = self._updating_grid
        self._updating_grid = True
        try:
            for col_index, col in enumerate(OPTION_COLUMNS):
                item = self.grid.item(row, col_index)
                if item is None:
                    self.grid.setItem(row, col_index, self._make_item(record, col_index))
                elif col.kind == "bool":
                    # itemChanged の最中に呼ばれることがあるので item は差し替えない
                    item.setCheckState(Qt.Checked if record.boolean_value else Qt.Unchecked)
                else:
                    item.setText(record.display_text(col.attr))
        finally:
            self._updating_grid = was_updating

    def _populate_grid(self) -> None:
        """OptionDocument の中身でグリッドを作り直す。"""
        self._updating_grid = True
        try:
            self.grid.setRowCount(0)
            for row, record in enumerate(self.document.records):
                record.subscribe(self._on_record_changed)
                self.grid.insertRow(row)
                self._fill_row(row, record)
        finally:
            self._updating_grid = False
        self._update_loaded_label()

    def _on_item_changed(self, item: QTableWidgetItem) -> None:
        if self._updating_grid:
            return

        row, col_index = item.row(), item.column()
        if not 0 <= row < len(self.document):
            return

        record = self.document[row]
        col = OPTION_COLUMNS[col_index]

        try:
            if col.kind == "bool":
                record.boolean_value = item.checkState() == Qt.Checked
            else:
                record.set_text(col.attr, item.text())
        except FieldFormatError as e:
            QMessageBox.warning(
                self,
                "Invalid value",
                f"{col.header} is invalid.\n\n{e}\n\n"
                "Expected:\n- Date: yyyy-MM-dd\n- Time: HH:mm or HH:mm:ss",
            )
            # 元の値に戻す
            self._fill_row(row, record)

    def _on_record_changed(self, record: OptionRecord, field: str) -> None:
        try:
            row = self.document.records.index(record)
        except ValueError:
            return
        # 日付と時刻は同じ値を共有しているので行ごと描き直す
        self._fill_row(row, record)

    def _on_grid_context_menu(self, pos) -> None:
        index = self.grid.indexAt(pos)
        if index.isValid() and not self.grid.selectionModel().isRowSelected(index.row(), index.parent()):
            self.grid.clearSelection()
            self.grid.selectRow(index.row())

        menu = QMenu(self)
        menu.addAction(self.add_row_action)
        menu.addAction(self.delete_rows_action)
        menu.exec(self.grid.viewport().mapToGlobal(pos))

    def _selected_rows(self) -> List[int]:
        return sorted({index.row() for index in self.grid.selectionModel().selectedRows()})

    def _add_row(self) -> None:
        record = self.document.add_row()
        record.subscribe(self._on_record_changed)

        row = self.grid.rowCount()
        self._updating_grid = True
        try:
            self.grid.insertRow(row)
        finally:
            self._updating_grid = False
        self._fill_row(row, record)
        self.grid.scrollToItem(self.grid.item(row, 0))

    def _delete_selected_rows(self) -> None:
        rows = self._selected_rows()
        if not rows:
            return

        result = QMessageBox.question(
            self,
            "Delete Row",
            f"Delete {len(rows)} selected row(s)?",
            QMessageBox.Yes | QMessageBox.No,
        )
        if result != QMessageBox.Yes:
            return

        for row in rows:
            self.document[row].unsubscribe(self._on_record_changed)
        self.document.remove_rows(rows)
        self._populate_grid()

    # ─────────────────────────────
    # ドキュメントの状態表示
    # ─────────────────────────────
    def _on_document_event(self, document: OptionDocument, event: str) -> None:
        if event == "rows":
            self._update_loaded_label()
        elif event == "path":
            path = document.current_path
            self.file_name_edit.setText(path.name if path else "")
            self.file_location_edit.setText(str(path.parent) if path else "")
        self._update_title()

    def _update_loaded_label(self) -> None:
        self.loaded_label.setText(f"Loaded: {len(self.document)} options")

    def _update_title(self) -> None:
        path = self.document.current_path
        name = path.name if path else "(new file)"
        suffix = " *" if self.document.dirty else ""
        self.setWindowTitle(f"{APP_TITLE} - {name}{suffix}")

    # ─────────────────────────────
    # ファイル操作
    # ─────────────────────────────
    def _confirm_discard_if_dirty(self) -> bool:
        if not self.document.dirty:
            return True
        result = QMessageBox.question(
            self,
            "Unsaved Changes",
            "You have unsaved changes. Discard them?",
            QMessageBox.Yes | QMessageBox.No,
        )
        return result == QMessageBox.Yes

    def _new_file(self) -> None:
        for record in self.document.records:
            record.unsubscribe(self._on_record_changed)
        self.document.new_document()
        self._populate_grid()
        last_dir = settings_store.last_directory()
        if last_dir is not None:
            self.file_location_edit.setText(str(last_dir))

    def _on_new(self) -> None:
        if self._confirm_discard_if_dirty():
            self._new_file()

    def import_json(self, path: Optional[Path] = None) -> None:
        if not self._confirm_discard_if_dirty():
            return

        if path is None:
            start_dir = settings_store.last_directory()
            path_str, _ = QFileDialog.getOpenFileName(
                self,
                "Import JSON options file",
                str(start_dir) if start_dir else "",
                "JSON files (*.json);;All files (*.*)",
            )
            if not path_str:
                return
            path = Path(path_str)

        old_records = self.document.records
        try:
            count = self.document.import_file(path)
        except OptionImportError as e:
            logger.error("Import of %s failed: %s", path, e)
            QMessageBox.critical(self, "Import Failed", str(e))
            return

        for record in old_records:
            record.unsubscribe(self._on_record_changed)
        self._populate_grid()
        settings_store.remember_file(path)
        self.statusBar().showMessage(
            f"Imported {count} option(s) from {path.name} (encoding: {self.document.last_encoding})"
        )

    def _populate_recent_menu(self) -> None:
        self.recent_menu.clear()
        paths = settings_store.recent_files()
        if not paths:
            action = self.recent_menu.addAction("(none)")
            action.setEnabled(False)
            return
        for p in paths:
            action = self.recent_menu.addAction(str(p))
            action.triggered.connect(lambda checked=False, p=p: self.import_json(p))

    def _browse_for_folder(self) -> None:
        start = self.file_location_edit.text().strip()
        if not start and self.document.current_path is not None:
            start = str(self.document.current_path.parent)

        folder = QFileDialog.getExistingDirectory(
            self, "Choose the folder where JSON files should be saved", start
        )
        if folder:
            self.file_location_edit.setText(folder)

    def _export_to(self, target: Path) -> bool:
        self.grid.commit_pending_edit()
        try:
            self.document.export_file(target)
        except OptionExportError as e:
            logger.error("Export to %s failed: %s", target, e)
            QMessageBox.critical(self, "Save Failed", str(e))
            return False

        settings_store.remember_file(target)
        self.statusBar().showMessage(f"Saved {len(self.document)} option(s) to {target}")
        return True

    def _save(self) -> bool:
        if self.document.current_path is None:
            return self._save_as()
        return self._export_to(self.document.current_path)

    def _save_as(self) -> bool:
        """下部バーのフォルダ + ファイル名に保存する。"""
        directory = self.file_location_edit.text().strip()
        if not directory or not Path(directory).is_dir():
            self._browse_for_folder()
            directory = self.file_location_edit.text().strip()

        try:
            target = build_target_path(directory, self.file_name_edit.text())
        except OptionExportError as e:
            QMessageBox.warning(self, "Save As", str(e))
            return False

        if target.exists() and target != self.document.current_path:
            result = QMessageBox.question(
                self,
                "Save As",
                "That file already exists. Overwrite it?",
                QMessageBox.Yes | QMessageBox.No,
            )
            if result != QMessageBox.Yes:
                return False

        return self._export_to(target)

    # ─────────────────────────────
    # ウィンドウイベント
    # ─────────────────────────────
    def dragEnterEvent(self, event) -> None:
        if event.mimeData().hasUrls():
            event.acceptProposedAction()

    def dropEvent(self, event) -> None:
        for url in event.mimeData().urls():
            path = Path(url.toLocalFile())
            if path.suffix.lower() == ".json":
                self.import_json(path)
                return

    def closeEvent(self, event) -> None:
        if not self.document.dirty:
            event.accept()
            return

        result = QMessageBox.warning(
            self,
            "Unsaved Changes",
            "You have unsaved changes. Save before closing?",
            QMessageBox.Yes | QMessageBox.No | QMessageBox.Cancel,
        )
        if result == QMessageBox.Cancel:
            event.ignore()
            return
        if result == QMessageBox.Yes and not self._save():
            event.ignore()
            return
        event.accept()
