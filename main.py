import logging
import os
import sys
from PySide6.QtWidgets import QApplication
from ui.main_window import MainWindow
from ui.styles import apply_dark_theme


def main() -> int:
    logging.basicConfig(
        level=os.environ.get("SCUBACHECK_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = QApplication(sys.argv)
    apply_dark_theme(app)

    win = MainWindow()
    win.show()

    return app.exec()

if __name__ == "__main__":
    raise SystemExit(main())
