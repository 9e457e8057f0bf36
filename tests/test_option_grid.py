import os

import pytest

pytest.importorskip("PySide6.QtWidgets")
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QAbstractItemView, QApplication, QTableWidgetItem  # noqa: E402

from quickoption.gui.main_window import OptionGrid  # noqa: E402


@pytest.fixture(scope="module")
def app():
    return QApplication.instance() or QApplication([])


@pytest.fixture
def grid(app):
    widget = OptionGrid()
    widget.setRowCount(1)
    widget.setColumnCount(1)
    widget.setItem(0, 0, QTableWidgetItem("before"))
    widget.show()
    yield widget
    widget.close()
    widget.deleteLater()


def test_commit_pending_edit_writes_open_editor_text(grid):
    changed = []
    grid.itemChanged.connect(lambda item: changed.append(item.text()))

    item = grid.item(0, 0)
    grid.setCurrentCell(0, 0)
    grid.editItem(item)
    assert grid.state() == QAbstractItemView.State.EditingState

    grid.indexWidget(grid.currentIndex()).setText("after")
    grid.commit_pending_edit()

    assert item.text() == "after"
    assert changed == ["after"]
    assert grid.state() != QAbstractItemView.State.EditingState


def test_commit_pending_edit_without_editor_is_a_no_op(grid):
    grid.commit_pending_edit()
    assert grid.item(0, 0).text() == "before"
