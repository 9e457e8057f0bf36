# src/quickoption/logic/json_tree.py

from __future__ import annotations

import copy
from typing import Any, Dict

JsonObject = Dict[str, Any]


def deep_clone(node: Any) -> Any:
    """
    JSON ノード（dict / list / スカラー）の完全なコピーを返す。

    取り込み・テンプレート・書き出しの境界では必ずこれを通し、
    レコード同士やテンプレートと同じ dict / list を共有しないようにする。
    """
    return copy.deepcopy(node)
