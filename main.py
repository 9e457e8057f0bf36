# main.py
"""
Quick Option Import/Export のエントリポイント。

- src/ を import パスに追加
- ログ出力を設定
- PySide6 の QApplication を立ち上げて MainWindow を表示
"""

import logging
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

# ──────────────────────────────────────────────
# src ディレクトリを import パスに追加
# ──────────────────────────────────────────────
ROOT_DIR = Path(__file__).resolve().parent
SRC_DIR = ROOT_DIR / "src"

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from quickoption.gui.main_window import MainWindow  # noqa: E402


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    app = QApplication(sys.argv)
    win = MainWindow()
    win.show()

    # コマンドライン引数に JSON ファイルが渡されたらそのまま取り込む
    if len(sys.argv) > 1:
        win.import_json(Path(sys.argv[1]))

    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
