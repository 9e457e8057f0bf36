# src/quickoption/logic/field_codec.py
"""
編集対象フィールドの読み書きルール。

- read_xxx: キーが無い / 型が違う / 解析できない場合はゼロ値を返す（例外は出さない）
- write_xxx: 常にキーを上書き（無ければ追加）
- DateTime は 1 つの文字列として保存し、画面上は「日付」「時刻」の 2 列に分けて編集する
- parse_xxx_text: グリッドに入力された文字列の検証。NG なら FieldFormatError
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from quickoption.errors import FieldFormatError
from quickoption.logic.json_tree import JsonObject

# 「未設定」を表す日時
SENTINEL_DATETIME = datetime(1900, 1, 1)
SENTINEL_DATETIME_TEXT = "1900-01-01T00:00:00"

INT32_MIN, INT32_MAX = -(2 ** 31), 2 ** 31 - 1
INT64_MIN, INT64_MAX = -(2 ** 63), 2 ** 63 - 1

# 保存されている DateTime 文字列（ISO 8601 風）
RE_STORED_DATETIME = re.compile(
    r"^\s*([0-9]{4})-([0-9]{2})-([0-9]{2})"
    r"(?:[T ]([0-9]{2}):([0-9]{2})(?::([0-9]{2})(?:\.([0-9]+))?)?)?"
    r"(Z|[+-][0-9]{2}:?[0-9]{2})?\s*$"
)

# 画面入力用
RE_DATE_INPUT = re.compile(r"^([0-9]{4})-([0-9]{2})-([0-9]{2})$")
RE_TIME_INPUT = re.compile(r"^([01][0-9]|2[0-3]):([0-5][0-9])(?::([0-5][0-9]))?$")
RE_INT_INPUT = re.compile(r"^[+-]?[0-9]+$")
RE_FLOAT_INPUT = re.compile(r"^[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$")

_TRUE_WORDS = {"true", "1", "yes", "y", "on"}
_FALSE_WORDS = {"false", "0", "no", "n", "off", ""}


def _get(obj: JsonObject, key: str) -> Any:
    if not isinstance(obj, dict):
        return None
    return obj.get(key)


def _is_integer(value: Any) -> bool:
    # bool は int のサブクラスなので除外する
    return isinstance(value, int) and not isinstance(value, bool)


# ─────────────────────────────
# スカラー
# ─────────────────────────────
def _check_range(value: int, field: str, lo: int, hi: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise FieldFormatError(field, str(value), f"'{value}' is not a whole number.")
    if not lo <= value <= hi:
        raise FieldFormatError(field, str(value), f"'{value}' is out of range ({lo} to {hi}).")
    return value


def read_int(obj: JsonObject, key: str) -> int:
    value = _get(obj, key)
    if _is_integer(value) and INT32_MIN <= value <= INT32_MAX:
        return value
    return 0


def write_int(obj: JsonObject, key: str, value: int, field: str = "") -> None:
    # 範囲外は書き込まずに FieldFormatError（読み出しで 0 になってしまうため）
    obj[key] = _check_range(value, field or key, INT32_MIN, INT32_MAX)


def read_long(obj: JsonObject, key: str) -> int:
    value = _get(obj, key)
    if _is_integer(value) and INT64_MIN <= value <= INT64_MAX:
        return value
    return 0


def write_long(obj: JsonObject, key: str, value: int, field: str = "") -> None:
    obj[key] = _check_range(value, field or key, INT64_MIN, INT64_MAX)


def read_double(obj: JsonObject, key: str) -> float:
    value = _get(obj, key)
    if not (isinstance(value, float) or _is_integer(value)):
        return 0.0
    try:
        result = float(value)
    except OverflowError:
        # 10**400 のような巨大な整数
        return 0.0
    return result if math.isfinite(result) else 0.0


def write_double(obj: JsonObject, key: str, value: float, field: str = "") -> None:
    # NaN / Infinity は JSON に書き出せない
    try:
        result = float(value)
    except (OverflowError, TypeError, ValueError) as e:
        raise FieldFormatError(field or key, str(value), f"'{value}' is not a number.") from e
    if not math.isfinite(result):
        raise FieldFormatError(field or key, str(value), f"'{value}' is not a finite number.")
    obj[key] = result


def read_bool(obj: JsonObject, key: str) -> bool:
    value = _get(obj, key)
    return value if isinstance(value, bool) else False


def write_bool(obj: JsonObject, key: str, value: bool) -> None:
    obj[key] = bool(value)


def read_string(obj: JsonObject, key: str) -> str:
    value = _get(obj, key)
    return value if isinstance(value, str) else ""


def write_string(obj: JsonObject, key: str, value: Optional[str]) -> None:
    obj[key] = value if value is not None else ""


# ─────────────────────────────
# 日時
# ─────────────────────────────
def parse_stored_datetime(text: str) -> Optional[datetime]:
    """
    保存形式の日時文字列を datetime にする。解析できなければ None。

    対応する形:
      2024-05-01
      2024-05-01T14:30 / 2024-05-01 14:30:15
      2024-05-01T14:30:15.1234567  (.NET の "O" 形式。小数は 6 桁で切り捨て)
      末尾に Z または +09:00 / -0500 のオフセット
    """
    m = RE_STORED_DATETIME.match(text)
    if not m:
        return None

    year, month, day, hour, minute, second, fraction, offset = m.groups()

    tz = None
    if offset == "Z":
        tz = timezone.utc
    elif offset:
        sign = -1 if offset[0] == "-" else 1
        digits = offset[1:].replace(":", "")
        tz = timezone(sign * timedelta(hours=int(digits[:2]), minutes=int(digits[2:])))

    micro = int((fraction or "0")[:6].ljust(6, "0"))

    try:
        return datetime(
            int(year), int(month), int(day),
            int(hour or 0), int(minute or 0), int(second or 0),
            micro, tzinfo=tz,
        )
    except ValueError:
        return None


def format_datetime(dt: datetime) -> str:
    """
    .NET のラウンドトリップ書式（"O"）相当の文字列にする。

    naive:  2024-05-01T14:30:00.0000000
    UTC:    2024-05-01T14:30:00.0000000Z
    その他: 2024-05-01T14:30:00.0000000+09:00
    """
    text = (
        f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"
        f"T{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}.{dt.microsecond:06d}0"
    )

    offset = dt.utcoffset()
    if offset is None:
        return text
    if dt.tzinfo is timezone.utc:
        return text + "Z"

    total = int(offset.total_seconds()) // 60
    sign = "-" if total < 0 else "+"
    hours, minutes = divmod(abs(total), 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def read_datetime(obj: JsonObject, key: str) -> datetime:
    value = _get(obj, key)
    if isinstance(value, str):
        parsed = parse_stored_datetime(value)
        if parsed is not None:
            return parsed
    return SENTINEL_DATETIME


def write_datetime(obj: JsonObject, key: str, dt: datetime) -> None:
    obj[key] = format_datetime(dt)


def format_date_view(dt: datetime) -> str:
    """日付列の表示。1900 年以前は「未設定」として空文字。"""
    if dt.year <= 1900:
        return ""
    return f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"


def format_time_view(dt: datetime) -> str:
    """時刻列の表示。日時が番兵値（1900 年以前かつ 0:00:00）のときだけ空文字。"""
    if dt.year <= 1900 and dt.hour == 0 and dt.minute == 0 and dt.second == 0:
        return ""
    return f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"


def apply_date_view(current: datetime, text: Optional[str], field: str = "date_value") -> datetime:
    """
    日付列の入力を current に反映した新しい日時を返す（時刻はそのまま残す）。

    空入力は 1900-01-01 に戻す。それ以外は yyyy-MM-dd のみ受け付ける。
    """
    raw = (text or "").strip()
    if not raw:
        return datetime(1900, 1, 1, current.hour, current.minute, current.second)

    m = RE_DATE_INPUT.match(raw)
    if not m:
        raise FieldFormatError(field, raw, f"'{raw}' is not a valid date. Expected: yyyy-MM-dd")
    try:
        return datetime(
            int(m.group(1)), int(m.group(2)), int(m.group(3)),
            current.hour, current.minute, current.second,
        )
    except ValueError as e:
        raise FieldFormatError(field, raw, f"'{raw}' is not a valid date. Expected: yyyy-MM-dd") from e


def apply_time_view(current: datetime, text: Optional[str], field: str = "time_value") -> datetime:
    """
    時刻列の入力を current に反映した新しい日時を返す（日付はそのまま残す）。

    空入力は 00:00:00 に戻す。それ以外は HH:mm または HH:mm:ss（24 時間制・ゼロ埋め）。
    """
    raw = (text or "").strip()
    if not raw:
        return datetime(current.year, current.month, current.day, 0, 0, 0)

    m = RE_TIME_INPUT.match(raw)
    if not m:
        raise FieldFormatError(field, raw, f"'{raw}' is not a valid time. Expected: HH:mm or HH:mm:ss")
    return datetime(
        current.year, current.month, current.day,
        int(m.group(1)), int(m.group(2)), int(m.group(3) or 0),
    )


# ─────────────────────────────
# グリッド入力の検証
# ─────────────────────────────
def parse_int_text(text: Optional[str], field: str, bits: int = 32) -> int:
    raw = (text or "").strip()
    if not RE_INT_INPUT.match(raw):
        raise FieldFormatError(field, raw, f"'{raw}' is not a whole number. Enter a whole number.")

    value = int(raw)
    lo, hi = (INT32_MIN, INT32_MAX) if bits == 32 else (INT64_MIN, INT64_MAX)
    if not lo <= value <= hi:
        raise FieldFormatError(field, raw, f"'{raw}' is out of range ({lo} to {hi}).")
    return value


def parse_double_text(text: Optional[str], field: str) -> float:
    raw = (text or "").strip()
    if not RE_FLOAT_INPUT.match(raw):
        raise FieldFormatError(
            field, raw, f"'{raw}' is not a number. Enter a numeric value (example: 0 or 12.34)."
        )
    value = float(raw)
    if not math.isfinite(value):
        raise FieldFormatError(field, raw, f"'{raw}' is too large.")
    return value


def parse_bool_text(text: Optional[str], field: str) -> bool:
    raw = (text or "").strip().lower()
    if raw in _TRUE_WORDS:
        return True
    if raw in _FALSE_WORDS:
        return False
    raise FieldFormatError(field, raw, f"'{raw}' is not a boolean. Enter true or false.")
