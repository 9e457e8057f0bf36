# src/quickoption/settings_store.py

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# QUICKOPTION_SETTINGS で場所を変えられる（テスト用）
_DEFAULT_SETTINGS_FILE = Path.home() / ".quickoption_settings.json"

MAX_RECENT_FILES = 10


def settings_path() -> Path:
    override = os.environ.get("QUICKOPTION_SETTINGS")
    if override:
        return Path(override)
    return _DEFAULT_SETTINGS_FILE


def load_settings() -> Dict[str, Any]:
    """
    設定ファイルを読み込んで dict を返す。
    無い / 壊れている場合は空の dict（アプリの動作は止めない）。
    """
    path = settings_path()
    if not path.exists():
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", path, e)
        return {}

    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: root is not an object", path)
        return {}
    return data


def save_setting(key: str, value: Any) -> None:
    data = load_settings()
    data[key] = value

    path = settings_path()
    try:
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as e:
        # 書き出し失敗時は警告だけ出して続行
        logger.warning("Could not write settings file %s: %s", path, e)


def last_directory() -> Optional[Path]:
    raw = load_settings().get("last_directory")
    if not isinstance(raw, str) or not raw:
        return None
    path = Path(raw)
    return path if path.is_dir() else None


def recent_files() -> List[Path]:
    """最近使ったファイル（新しい順）。今も存在するものだけ返す。"""
    raw_list = load_settings().get("recent_files") or []
    if not isinstance(raw_list, list):
        return []

    paths: List[Path] = []
    for p in raw_list:
        if not isinstance(p, str):
            continue
        path = Path(p)
        if path.is_file():
            paths.append(path)
    return paths


def remember_file(path: Path) -> None:
    """取り込み / 書き出しに使ったファイルを最近使った一覧と last_directory に記録する。"""
    path = Path(path)
    raw_list = load_settings().get("recent_files") or []
    if not isinstance(raw_list, list):
        raw_list = []

    entry = str(path)
    updated = [entry] + [p for p in raw_list if isinstance(p, str) and p != entry]
    save_setting("recent_files", updated[:MAX_RECENT_FILES])
    save_setting("last_directory", str(path.parent))
