# src/quickoption/logic/record_normalizer.py

from __future__ import annotations

from typing import Any, Dict

from quickoption.logic.field_codec import SENTINEL_DATETIME_TEXT
from quickoption.logic.json_tree import JsonObject

KEY_OPTION_NUMBER = "OptionNumber"
KEY_SEQUENCE = "OptionSequence"
KEY_INFORMATION = "Information"

KEY_TEXT = "Text"
KEY_ASCII_FLAG = "AsciiFlag"
KEY_BOOLEAN = "Boolean"
KEY_LONG = "Long"
KEY_NUMERIC = "Numeric"
KEY_DATETIME = "DateTime"

# 値が無い（または null の）ときに入れる仮の値。並び順は追加される順になる
TOP_LEVEL_PLACEHOLDERS: Dict[str, Any] = {
    KEY_OPTION_NUMBER: 0,
    KEY_SEQUENCE: 0,
}

INFORMATION_PLACEHOLDERS: Dict[str, Any] = {
    KEY_TEXT: "",
    KEY_ASCII_FLAG: "",
    KEY_BOOLEAN: False,
    KEY_LONG: 0,
    KEY_NUMERIC: 0.0,
    KEY_DATETIME: SENTINEL_DATETIME_TEXT,
}


def normalize_option_node(node: JsonObject) -> JsonObject:
    """
    外部から来た JSON オブジェクトを、編集に必要な形にその場で整える。

    - OptionNumber / OptionSequence が無ければ 0 を入れる
    - Information がオブジェクトでなければ新しい dict に置き換える
    - Information 配下の Text / AsciiFlag / Boolean / Long / Numeric / DateTime が
      無ければ仮の値を入れる

    既にある値（null 以外）には触らないので、何度呼んでも結果は同じ。
    型が違う値もそのまま残す（読み出し側でゼロ値として扱う）。
    """
    if not isinstance(node, dict):
        raise TypeError(f"option node must be a JSON object, not {type(node).__name__}")

    for key, placeholder in TOP_LEVEL_PLACEHOLDERS.items():
        if node.get(key) is None:
            node[key] = placeholder

    info = node.get(KEY_INFORMATION)
    if not isinstance(info, dict):
        info = {}
        node[KEY_INFORMATION] = info

    for key, placeholder in INFORMATION_PLACEHOLDERS.items():
        if info.get(key) is None:
            info[key] = placeholder

    return node
