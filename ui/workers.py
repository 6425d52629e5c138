import logging
from pathlib import Path
from PySide6.QtCore import QObject, Signal, Slot

from scubacheck.analyzer import AnalysisSession, analyze_file

logger = logging.getLogger(__name__)

# =========================================================
# Worker: analysis + enrichment in background (keeps the UI responsive)
# =========================================================

class AnalysisWorker(QObject):
    progress = Signal(str)
    finished = Signal(object)   # AnalysisResult
    failed = Signal(str)

    def __init__(self, path: Path, session: AnalysisSession) -> None:
        super().__init__()
        self.path = path
        self.session = session

    def cancel(self) -> None:
        self.session.cancel()

    @Slot()
    def run(self) -> None:
        try:
            self.progress.emit(f"Analyzing {self.path.name}...")
            result = analyze_file(self.path, session=self.session)
            if self.session.cancelled:
                self.progress.emit("[!] Enrichment cancelled, showing local results.")
            self.finished.emit(result)
        except (OSError, ValueError) as e:
            self.failed.emit(f"{type(e).__name__}: {e}")
        except Exception as e:
            logger.exception("Analysis of %s failed", self.path)
            self.failed.emit(f"Unexpected error: {e}")
