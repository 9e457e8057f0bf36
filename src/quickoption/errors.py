# src/quickoption/errors.py

from __future__ import annotations


class QuickOptionError(Exception):
    """QuickOption 全体で使う例外の基底クラス。"""


class OptionImportError(QuickOptionError):
    """
    JSON ファイルの取り込みに失敗したときの例外。

    - ファイルが読めない / デコードできない
    - JSON として解析できない
    - ルートが配列でない、または配列の要素にオブジェクト以外が含まれる

    取り込みは全部成功か全部失敗のどちらかで、途中までの反映はしない。
    """


class OptionExportError(QuickOptionError):
    """JSON ファイルの書き出しに失敗したときの例外。"""


class FieldFormatError(QuickOptionError, ValueError):
    """
    グリッドから入力された値が、その列の書式に合わないときの例外。

    field: 対象の論理フィールド名（例: "date_value"）
    value: 入力された文字列
    """

    def __init__(self, field: str, value: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.value = value
