# src/quickoption/parser/option_file.py

from __future__ import annotations

import json
import math
import os
import stat
import tempfile
from pathlib import Path
from typing import Any, List, Tuple

import chardet

from quickoption.errors import OptionExportError, OptionImportError
from quickoption.logic.json_tree import JsonObject


def _reject_constant(name: str) -> Any:
    # json は NaN / Infinity を既定で受け付けてしまうので弾く
    raise ValueError(f"{name} is not valid JSON")


def _parse_finite_float(text: str) -> float:
    # 1e400 などは inf になり、書き出せなくなるので取り込み時点で弾く
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number {text} is out of range")
    return value


def decode_bytes(raw: bytes) -> Tuple[str, str]:
    """
    ファイルの中身をテキストにする。(テキスト, 使ったエンコーディング) を返す。

    基本は UTF-8（BOM 付きも可）。UTF-8 で読めないときだけ chardet で推定する。
    """
    try:
        return raw.decode("utf-8-sig"), "utf-8"
    except UnicodeDecodeError as first_error:
        guess = chardet.detect(raw)
        encoding = guess.get("encoding")
        if not encoding:
            raise OptionImportError("The file is not UTF-8 text.") from first_error
        try:
            return raw.decode(encoding), encoding.lower()
        except (UnicodeDecodeError, LookupError) as e:
            raise OptionImportError(
                f"The file could not be decoded (guessed encoding: {encoding})."
            ) from e


def parse_option_array(text: str) -> List[JsonObject]:
    """
    JSON テキストを解析し、オブジェクトの配列であることを確認して返す。

    ルートが配列でない、または要素に 1 つでもオブジェクト以外があればエラー。
    行単位で読み飛ばすことはしない。
    """
    if not text.strip():
        raise OptionImportError("File is empty or invalid JSON.")

    try:
        root = json.loads(
            text, parse_constant=_reject_constant, parse_float=_parse_finite_float
        )
    except ValueError as e:
        # json.JSONDecodeError は ValueError のサブクラス
        raise OptionImportError(f"File is not valid JSON: {e}") from e

    if root is None:
        raise OptionImportError("File is empty or invalid JSON.")
    if not isinstance(root, list):
        raise OptionImportError("Expected the root JSON to be an array of option objects.")

    for index, item in enumerate(root):
        if not isinstance(item, dict):
            raise OptionImportError(
                f"One or more items in the JSON array is not an object (item {index})."
            )

    return root


def read_option_file(path: Path) -> Tuple[List[JsonObject], str]:
    """ファイルを読み込み (オブジェクトのリスト, エンコーディング) を返す。"""
    try:
        raw = Path(path).read_bytes()
    except OSError as e:
        raise OptionImportError(f"Could not read {path}: {e}") from e

    text, encoding = decode_bytes(raw)
    return parse_option_array(text), encoding


def serialize_option_array(nodes: List[JsonObject]) -> str:
    try:
        return json.dumps(nodes, ensure_ascii=False, indent=2, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise OptionExportError(f"Options could not be serialized: {e}") from e


def _target_mode(path: Path) -> int:
    """書き出し先のパーミッション。既存ファイルならその値、新規なら umask を当てた 0o666。"""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def atomic_write_text(path: Path, text: str) -> None:
    """
    同じフォルダの一時ファイルに書いてから os.replace で差し替える。
    失敗したときは一時ファイルを消し、元のファイルには触らない。
    """
    path = Path(path)
    try:
        fd, tmp = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=str(path.parent))
    except OSError as e:
        raise OptionExportError(f"Could not write {path}: {e}") from e

    tmp_path = Path(tmp)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
            f.flush()
        # mkstemp は 0600 で作るので、差し替え前に元の権限へ戻す
        os.chmod(str(tmp_path), _target_mode(path))
        os.replace(str(tmp_path), str(path))
    except OSError as e:
        raise OptionExportError(f"Could not write {path}: {e}") from e
    finally:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass


def write_option_file(path: Path, nodes: List[JsonObject]) -> None:
    atomic_write_text(path, serialize_option_array(nodes))
