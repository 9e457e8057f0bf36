# src/quickoption/models/option_record.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from quickoption.errors import FieldFormatError
from quickoption.logic import field_codec as codec
from quickoption.logic.json_tree import JsonObject, deep_clone
from quickoption.logic.record_normalizer import (
    KEY_ASCII_FLAG,
    KEY_BOOLEAN,
    KEY_DATETIME,
    KEY_INFORMATION,
    KEY_LONG,
    KEY_NUMERIC,
    KEY_OPTION_NUMBER,
    KEY_SEQUENCE,
    KEY_TEXT,
    normalize_option_node,
)

logger = logging.getLogger(__name__)

# callback(record, field_name)
FieldChangedCallback = Callable[["OptionRecord", str], None]


@dataclass(frozen=True)
class OptionColumn:
    attr: str      # OptionRecord の属性名
    header: str    # グリッドの列見出し
    kind: str      # "int" / "long" / "double" / "bool" / "text" / "date" / "time"


# グリッドの列（表示順）
OPTION_COLUMNS: List[OptionColumn] = [
    OptionColumn("option_number", "Option Number", "int"),
    OptionColumn("sequence",      "Sequence",      "int"),
    OptionColumn("text_value",    "Text Value",    "text"),
    OptionColumn("time_value",    "Time Value",    "time"),
    OptionColumn("numeric_value", "Numeric Value", "double"),
    OptionColumn("long_value",    "Long Value",    "long"),
    OptionColumn("date_value",    "Date Value",    "date"),
    OptionColumn("boolean_value", "Boolean Value", "bool"),
    OptionColumn("ascii_value",   "Ascii Value",   "text"),
]

_COLUMNS_BY_ATTR = {col.attr: col for col in OPTION_COLUMNS}


def column_for(attr: str) -> OptionColumn:
    try:
        return _COLUMNS_BY_ATTR[attr]
    except KeyError:
        raise KeyError(f"unknown option field: {attr}") from None


def format_double(value: float) -> str:
    """0.0 -> "0", 12.5 -> "12.5" のように、グリッド向けに余計な ".0" を付けない。"""
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


class OptionRecord:
    """
    オプション 1 件分の編集用ビュー。

    元の JSON オブジェクト（dict）をそのまま抱え、編集対象のフィールドだけを
    型付きのプロパティとして見せる。それ以外のキーには一切触らないので、
    書き出し時には元の構造・キー順がそのまま残る。

    - getter は例外を出さず、壊れた値はゼロ値として読む
    - setter は書き込んだ後に購読者へ通知する（同期・登録順）
    - 元の dict は参照で外に出さない。必要なら clone_node() でコピーを取る
    """

    def __init__(self, node: JsonObject) -> None:
        if node is None:
            raise TypeError("OptionRecord requires a JSON object, got None")
        if not isinstance(node, dict):
            raise TypeError(f"OptionRecord requires a JSON object, got {type(node).__name__}")

        self._node: JsonObject = normalize_option_node(node)
        self._listeners: List[FieldChangedCallback] = []

    # ─ 通知 ─────────────────────────────────────────
    def subscribe(self, callback: FieldChangedCallback) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unsubscribe(self, callback: FieldChangedCallback) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _raise(self, field: str) -> None:
        for callback in list(self._listeners):
            callback(self, field)

    # ─ 元 JSON ──────────────────────────────────────
    def clone_node(self) -> JsonObject:
        return deep_clone(self._node)

    @property
    def _info(self) -> JsonObject:
        info = self._node.get(KEY_INFORMATION)
        if not isinstance(info, dict):
            # 外から Information を壊されていた場合でも読み書きできるように戻す
            normalize_option_node(self._node)
            info = self._node[KEY_INFORMATION]
        return info

    # ─ トップレベル ─────────────────────────────────
    @property
    def option_number(self) -> int:
        return codec.read_int(self._node, KEY_OPTION_NUMBER)

    @option_number.setter
    def option_number(self, value: int) -> None:
        codec.write_int(self._node, KEY_OPTION_NUMBER, value, "option_number")
        self._raise("option_number")

    @property
    def sequence(self) -> int:
        return codec.read_int(self._node, KEY_SEQUENCE)

    @sequence.setter
    def sequence(self, value: int) -> None:
        codec.write_int(self._node, KEY_SEQUENCE, value, "sequence")
        self._raise("sequence")

    # ─ Information ──────────────────────────────────
    @property
    def text_value(self) -> str:
        return codec.read_string(self._info, KEY_TEXT)

    @text_value.setter
    def text_value(self, value: Optional[str]) -> None:
        codec.write_string(self._info, KEY_TEXT, value)
        self._raise("text_value")

    @property
    def ascii_value(self) -> str:
        return codec.read_string(self._info, KEY_ASCII_FLAG)

    @ascii_value.setter
    def ascii_value(self, value: Optional[str]) -> None:
        codec.write_string(self._info, KEY_ASCII_FLAG, value)
        self._raise("ascii_value")

    @property
    def boolean_value(self) -> bool:
        return codec.read_bool(self._info, KEY_BOOLEAN)

    @boolean_value.setter
    def boolean_value(self, value: bool) -> None:
        codec.write_bool(self._info, KEY_BOOLEAN, value)
        self._raise("boolean_value")

    @property
    def numeric_value(self) -> float:
        return codec.read_double(self._info, KEY_NUMERIC)

    @numeric_value.setter
    def numeric_value(self, value: float) -> None:
        codec.write_double(self._info, KEY_NUMERIC, value, "numeric_value")
        self._raise("numeric_value")

    @property
    def long_value(self) -> int:
        return codec.read_long(self._info, KEY_LONG)

    @long_value.setter
    def long_value(self, value: int) -> None:
        codec.write_long(self._info, KEY_LONG, value, "long_value")
        self._raise("long_value")

    @property
    def date_time(self) -> datetime:
        """DateTime の中身（読み取り専用。編集は date_value / time_value から）"""
        return codec.read_datetime(self._info, KEY_DATETIME)

    @property
    def date_value(self) -> str:
        return codec.format_date_view(self.date_time)

    @date_value.setter
    def date_value(self, value: Optional[str]) -> None:
        # 解析に失敗したらここで例外になり、元の値は残る
        updated = codec.apply_date_view(self.date_time, value, "date_value")
        codec.write_datetime(self._info, KEY_DATETIME, updated)
        self._raise("date_value")

    @property
    def time_value(self) -> str:
        return codec.format_time_view(self.date_time)

    @time_value.setter
    def time_value(self, value: Optional[str]) -> None:
        updated = codec.apply_time_view(self.date_time, value, "time_value")
        codec.write_datetime(self._info, KEY_DATETIME, updated)
        self._raise("time_value")

    # ─ グリッド向け（文字列ベース） ─────────────────
    def display_text(self, attr: str) -> str:
        col = column_for(attr)
        value = getattr(self, col.attr)

        if col.kind == "double":
            return format_double(value)
        if col.kind == "bool":
            return "true" if value else "false"
        return str(value)

    def set_text(self, attr: str, text: Optional[str]) -> None:
        """
        グリッドで入力された文字列を検証してから書き込む。
        書式が合わなければ FieldFormatError（値は変わらない）。
        """
        col = column_for(attr)

        try:
            if col.kind == "int":
                value = codec.parse_int_text(text, col.attr, bits=32)
            elif col.kind == "long":
                value = codec.parse_int_text(text, col.attr, bits=64)
            elif col.kind == "double":
                value = codec.parse_double_text(text, col.attr)
            elif col.kind == "bool":
                value = codec.parse_bool_text(text, col.attr)
            else:
                # text / date / time は setter 側で処理する
                value = text if text is not None else ""
            setattr(self, col.attr, value)
        except FieldFormatError as e:
            logger.warning("Rejected %s edit %r: %s", col.header, e.value, e)
            raise

    def __repr__(self) -> str:
        return (
            f"OptionRecord(option_number={self.option_number}, "
            f"sequence={self.sequence}, text_value={self.text_value!r})"
        )
