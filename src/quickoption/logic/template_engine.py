# src/quickoption/logic/template_engine.py

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from quickoption.logic.field_codec import SENTINEL_DATETIME_TEXT, INT32_MAX, format_datetime
from quickoption.logic.json_tree import JsonObject, deep_clone

logger = logging.getLogger(__name__)

TemplateFactory = Callable[[], JsonObject]


def _compare_results() -> JsonObject:
    return {
        "m_MaxCapacity": INT32_MAX,
        "Capacity": 16,
        "m_StringValue": "",
        "m_currentThread": 0,
    }


def create_default_template() -> JsonObject:
    """
    新規ファイル用の最小テンプレートを毎回新しく作って返す。

    編集対象外の SystemAudit / Obsolete / Db などは、取り込み側のシステムが
    期待する外枠をそのまま再現しているだけで、こちらでは読まない。
    ファイルを取り込んだ後は、1 件目をコピーしたテンプレートに切り替わる。
    """
    now_text = format_datetime(datetime.now().astimezone())

    return {
        "_IsModified": False,
        "OptionNumber": 0,
        "OptionSequence": 0,
        "SystemAudit": {
            "LastChange": {
                "_DateTime": now_text,
                "_DateTimeReadCount": 0,
                "_DateTimeWriteCount": 0,
                "_TerminalCode": "",
                "_TerminalCodeReadCount": 0,
                "_TerminalCodeWriteCount": 0,
                "UserCD": {"Information": {"Username": ""}},
                "ProgramCD": {
                    "Information": {
                        "_ShortName": "",
                        "_ShortNameReadCount": 0,
                        "_ShortNameWriteCount": 0,
                        "ShortName": "",
                    }
                },
                "DateTime": now_text,
                "TerminalCode": "",
            },
            "CompareResults": _compare_results(),
            "Db": None,
            "GabProperties": None,
        },
        "Obsolete": {
            "LastReadBy": "",
            "Filler": "",
            "LastReadDate": {"DateTime": SENTINEL_DATETIME_TEXT},
        },
        "Information": {
            "Text": "",
            "AsciiFlag": "",
            "Boolean": False,
            "Long": 0,
            "Numeric": 0.0,
            "DateTime": SENTINEL_DATETIME_TEXT,
        },
        "GabProperties": None,
        "IsModified": False,
        "LastModeRead": 0,
        "ChildObject": None,
        "ContextStatus": 0,
        "ModePropertiesRead": None,
        "ConnectionIndex": 0,
        "Locked": False,
        "ProviderStatus": 0,
        "ProviderStatusDescription": "",
        "CompareResults": _compare_results(),
        "Db": {
            "DatabaseEngineType": 0,
            "Bt": {
                "CompanyCode": "",
                "OverrideLock": False,
                "SuppressBTErrorUI": False,
            },
            "CompanyCode": "",
            "ServerName": "",
            "IsDisposed": False,
        },
    }


class TemplateEngine:
    """
    「行を追加」したときに使う JSON オブジェクトの作り方を管理する。

    - 新規ドキュメント / 未取り込み: create_default_template()
    - 取り込み成功後: 1 件目（正規化済み）のコピーを毎回 deep_clone して返す

    ドキュメント 1 つにつき 1 つ持つ（プロセス全体で共有しない）。
    """

    def __init__(self) -> None:
        self._snapshot: Optional[JsonObject] = None
        self._factory: TemplateFactory = create_default_template

    @property
    def is_default(self) -> bool:
        return self._snapshot is None

    def reset(self) -> None:
        self._snapshot = None
        self._factory = create_default_template
        logger.info("New-row template reset to the built-in default")

    def seed_from(self, node: JsonObject) -> None:
        """node のコピーを保持し、以後はそのコピーからさらにコピーして返す。"""
        snapshot = deep_clone(node)
        self._snapshot = snapshot
        self._factory = lambda: deep_clone(snapshot)
        logger.info("New-row template seeded from imported record")

    def create(self) -> JsonObject:
        return self._factory()

    def snapshot(self) -> Optional[JsonObject]:
        # 確認用。中身を書き換えられないようにコピーを返す
        if self._snapshot is None:
            return None
        return deep_clone(self._snapshot)
