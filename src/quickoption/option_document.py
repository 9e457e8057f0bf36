# src/quickoption/option_document.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from quickoption.errors import OptionExportError
from quickoption.logic.json_tree import deep_clone
from quickoption.logic.template_engine import TemplateEngine
from quickoption.models.option_record import OptionRecord
from quickoption.parser.option_file import read_option_file, write_option_file

logger = logging.getLogger(__name__)

# callback(document, event)  event: "rows" / "dirty" / "path"
DocumentCallback = Callable[["OptionDocument", str], None]


def build_target_path(directory: Path | str, file_name: str) -> Path:
    """
    保存先フォルダとファイル名から書き出し先のパスを作る。
    拡張子 .json が無ければ付ける。
    """
    folder = Path(str(directory).strip()) if str(directory).strip() else None
    if folder is None or not folder.is_dir():
        raise OptionExportError("Please choose a valid File Location folder.")

    name = (file_name or "").strip()
    if not name:
        raise OptionExportError("Please enter a File Name (example: TA-MyOptions.json).")
    if not name.lower().endswith(".json"):
        name += ".json"

    return folder / name


class OptionDocument:
    """
    開いている 1 ファイル分のオプション一覧。

    - import_file / export_file でファイルとやり取りする
    - add_row は TemplateEngine から新しい行を作る
    - 行の JSON は境界をまたぐたびに deep_clone し、レコード同士や
      テンプレートと同じ dict を共有しない
    """

    def __init__(self) -> None:
        self._records: List[OptionRecord] = []
        self._template = TemplateEngine()
        self._listeners: List[DocumentCallback] = []

        self.current_path: Optional[Path] = None
        self.last_encoding: Optional[str] = None
        self._dirty = False

    # ─ 一覧アクセス ─────────────────────────────────
    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[OptionRecord]:
        return iter(list(self._records))

    def __getitem__(self, index: int) -> OptionRecord:
        return self._records[index]

    @property
    def records(self) -> Tuple[OptionRecord, ...]:
        return tuple(self._records)

    @property
    def template(self) -> TemplateEngine:
        return self._template

    # ─ 通知 / 変更フラグ ────────────────────────────
    def subscribe(self, callback: DocumentCallback) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unsubscribe(self, callback: DocumentCallback) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self, event: str) -> None:
        for callback in list(self._listeners):
            callback(self, event)

    @property
    def dirty(self) -> bool:
        return self._dirty

    def _set_dirty(self, value: bool) -> None:
        if self._dirty != value:
            self._dirty = value
            self._notify("dirty")

    def _on_record_changed(self, record: OptionRecord, field: str) -> None:
        self._set_dirty(True)

    def _attach(self, record: OptionRecord) -> OptionRecord:
        record.subscribe(self._on_record_changed)
        return record

    def _detach_all(self) -> None:
        for record in self._records:
            record.unsubscribe(self._on_record_changed)

    # ─ 操作 ─────────────────────────────────────────
    def new_document(self) -> None:
        """一覧を空にし、テンプレートを既定に戻す。"""
        self._detach_all()
        self._records = []
        self._template.reset()
        self.current_path = None
        self.last_encoding = None

        self._notify("rows")
        self._notify("path")
        self._set_dirty(False)

    def import_file(self, path: Path | str) -> int:
        """
        JSON ファイルを取り込み、一覧を置き換える。取り込んだ件数を返す。

        失敗時は OptionImportError。その場合、今の一覧・テンプレートは変えない。
        """
        path = Path(path)
        nodes, encoding = read_option_file(path)

        # 解析元の配列から切り離してから正規化する
        records = [OptionRecord(deep_clone(node)) for node in nodes]

        self._detach_all()
        self._records = [self._attach(r) for r in records]
        if records:
            self._template.seed_from(records[0].clone_node())
        else:
            self._template.reset()

        self.current_path = path
        self.last_encoding = encoding
        logger.info("Imported %d option(s) from %s (%s)", len(records), path, encoding)

        self._notify("rows")
        self._notify("path")
        self._set_dirty(False)
        return len(records)

    def export_file(self, path: Path | str) -> None:
        """
        今の一覧を JSON 配列として書き出す。
        各レコードの JSON はコピーしてから並べるので、手元のレコードは変わらない。
        """
        path = Path(path)
        nodes = [record.clone_node() for record in self._records]
        write_option_file(path, nodes)

        self.current_path = path
        logger.info("Exported %d option(s) to %s", len(nodes), path)

        self._notify("path")
        self._set_dirty(False)

    def save(self) -> Path:
        if self.current_path is None:
            raise OptionExportError("The document has not been saved yet. Use Save As.")
        self.export_file(self.current_path)
        return self.current_path

    def save_as(self, directory: Path | str, file_name: str) -> Path:
        target = build_target_path(directory, file_name)
        self.export_file(target)
        return target

    def add_row(self) -> OptionRecord:
        record = self._attach(OptionRecord(self._template.create()))
        self._records.append(record)
        logger.debug("Added row %d", len(self._records) - 1)

        self._notify("rows")
        self._set_dirty(True)
        return record

    def remove_rows(self, indices: Iterable[int]) -> int:
        """
        指定位置（0 始まり）の行を削除し、削除した件数を返す。

        後ろから順に消すので残りの位置はずれない。範囲外の位置は無視する。
        """
        removed = 0
        for index in sorted(set(indices), reverse=True):
            if 0 <= index < len(self._records):
                record = self._records.pop(index)
                record.unsubscribe(self._on_record_changed)
                removed += 1
                logger.debug("Removed row %d", index)
            else:
                logger.warning("Ignored removal of row %d (have %d rows)", index, len(self._records))

        if removed:
            self._notify("rows")
            self._set_dirty(True)
        return removed
