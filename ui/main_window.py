from pathlib import Path

from PySide6.QtCore import QThread, Slot
from PySide6.QtGui import QColor, QDragEnterEvent, QDropEvent
from PySide6.QtWidgets import (
    QFileDialog,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from scubacheck.analyzer import AnalysisSession
from scubacheck.eml_parser import SUPPORTED_EXTENSIONS
from ui.styles import LATENCY_COLORS, score_color
from ui.workers import AnalysisWorker


class MainWindow(QMainWindow):
    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("SCUBA Check - Email Threat Analysis")
        self.resize(1100, 800)
        self.setAcceptDrops(True)

        # one session per window: cache lives as long as the window, never on disk
        self.session = AnalysisSession()

        self._thread: QThread | None = None
        self._worker: AnalysisWorker | None = None

        self._setup_ui()

    def _setup_ui(self):
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(10, 10, 10, 10)

        top_bar = QHBoxLayout()
        self.btn_open = QPushButton("Open Message")
        self.btn_open.setFixedHeight(40)
        self.btn_open.clicked.connect(self.open_message)
        top_bar.addWidget(self.btn_open)

        self.btn_cancel = QPushButton("Stop Enrichment")
        self.btn_cancel.setFixedHeight(40)
        self.btn_cancel.setEnabled(False)
        self.btn_cancel.clicked.connect(self.cancel_analysis)
        top_bar.addWidget(self.btn_cancel)

        top_bar.addStretch()
        self.status_label = QLabel("Drag & Drop a message file or click Open")
        top_bar.addWidget(self.status_label)
        layout.addLayout(top_bar)

        self.tabs = QTabWidget()
        layout.addWidget(self.tabs)

        self.score_view = QPlainTextEdit()
        self.score_view.setReadOnly(True)
        self.tabs.addTab(self.score_view, "Score")

        self.headers_view = QPlainTextEdit()
        self.headers_view.setReadOnly(True)
        self.tabs.addTab(self.headers_view, "Headers")

        self.auth_table = self._table(["Mechanism", "Status", "Details"])
        self.tabs.addTab(self.auth_table, "Authentication")

        self.route_table = self._table(["From", "IP", "By", "Protocol", "Time", "Delay"])
        self.tabs.addTab(self.route_table, "Routing")

        self.urls_table = self._table(["URL", "Score", "Suspicious", "Categories", "Sources", "Reasons"])
        self.tabs.addTab(self.urls_table, "URLs")

        self.atts_table = self._table(["Filename", "Type", "Size (MB)", "Risk", "Impact"])
        self.tabs.addTab(self.atts_table, "Attachments")

    def _table(self, labels):
        table = QTableWidget(0, len(labels))
        table.setHorizontalHeaderLabels(labels)
        table.horizontalHeader().setSectionResizeMode(0, QHeaderView.Stretch)
        table.setEditTriggers(QTableWidget.NoEditTriggers)
        table.setAlternatingRowColors(True)
        return table

    @staticmethod
    def _fill(table: QTableWidget, rows):
        table.setRowCount(0)
        for values in rows:
            row = table.rowCount()
            table.insertRow(row)
            for col, value in enumerate(values):
                table.setItem(row, col, QTableWidgetItem(str(value)))

    # =========================================================
    # DRAG & DROP
    # =========================================================
    @staticmethod
    def _supported(path: str) -> bool:
        return path.lower().endswith(SUPPORTED_EXTENSIONS)

    def dragEnterEvent(self, event: QDragEnterEvent):
        urls = event.mimeData().urls() if event.mimeData().hasUrls() else []
        if urls and self._supported(urls[0].toLocalFile()):
            event.acceptProposedAction()
            return
        event.ignore()

    def dropEvent(self, event: QDropEvent):
        urls = event.mimeData().urls()
        if urls and self._supported(urls[0].toLocalFile()):
            self._start_analysis(Path(urls[0].toLocalFile()))

    # =========================================================
    # ANALYSIS
    # =========================================================
    def open_message(self) -> None:
        patterns = " ".join(f"*{ext}" for ext in SUPPORTED_EXTENSIONS)
        file_path, _ = QFileDialog.getOpenFileName(
            self, "Open message", str(Path.home()), f"Email files ({patterns});;All files (*.*)",
        )
        if file_path:
            self._start_analysis(Path(file_path))

    def _start_analysis(self, path: Path) -> None:
        if self._thread is not None:
            QMessageBox.information(self, "Busy", "An analysis is already running.")
            return

        self.session.reset()
        self.btn_open.setEnabled(False)
        self.btn_cancel.setEnabled(True)

        self._thread = QThread()
        self._worker = AnalysisWorker(path, self.session)
        self._worker.moveToThread(self._thread)
        self._thread.started.connect(self._worker.run)
        self._worker.progress.connect(self.status_label.setText)
        self._worker.finished.connect(self._on_finished)
        self._worker.failed.connect(self._on_failed)
        self._worker.finished.connect(self._thread.quit)
        self._worker.failed.connect(self._thread.quit)
        self._thread.finished.connect(self._cleanup)
        self._thread.start()

    def cancel_analysis(self):
        if self._worker:
            self._worker.cancel()
            self.status_label.setText("Stopping enrichment...")

    @Slot()
    def _cleanup(self):
        self._thread.deleteLater()
        self._worker.deleteLater()
        self._thread = None
        self._worker = None
        self.btn_open.setEnabled(True)
        self.btn_cancel.setEnabled(False)

    @Slot(str)
    def _on_failed(self, message: str):
        self.status_label.setText("Analysis failed")
        QMessageBox.warning(self, "Analysis Error", message)

    @Slot(object)
    def _on_finished(self, result) -> None:
        score = result.security_score
        self.status_label.setText(f"Overall score: {score.overall}/100")
        self.status_label.setStyleSheet(f"color: {score_color(score.overall)};")

        lines = [
            f"Overall:        {score.overall}",
            f"Authentication: {score.authentication}",
            f"Content:        {score.content}",
            f"Attachments:    {score.attachments}",
            "",
            "Content findings:",
        ]
        lines += [f"  -{f.penalty}  {f.label}" for f in result.content_assessment.findings] or ["  none"]
        lines += ["", "Attachment combinations:"]
        lines += [f"  {r}" for r in result.attachment_assessment.combination_reasons] or ["  none"]
        if result.brand_matches:
            lines += ["", "Brand impersonation:"]
            lines += [f"  {m.brand_name} ({m.confidence:.0%}) in {m.location}" for m in result.brand_matches]
        self.score_view.setPlainText("\n".join(lines))

        h = result.headers
        self.headers_view.setPlainText(
            f"From: {h.from_}\nTo: {h.to}\nDate: {h.date}\nSubject: {h.subject}\n\n"
            "==== RAW HEADERS ====\n" + h.received
        )

        auth = result.auth
        spf_location = ""
        if auth.spf.ip_info:
            info = auth.spf.ip_info
            spf_location = f" {info.city or ''} {info.country or ''} {info.isp or ''}".rstrip()
        self._fill(self.auth_table, [
            ("SPF", auth.spf.status, f"domain={auth.spf.domain or '-'} ip={auth.spf.ip or '-'}{spf_location}"),
            ("DKIM", auth.dkim.status, f"domain={auth.dkim.domain or '-'} selector={auth.dkim.selector or '-'}"),
            ("DMARC", auth.dmarc.status, f"policy={auth.dmarc.policy or '-'} alignment={auth.dmarc.alignment or '-'}"),
        ])

        delays = [""] + [f"{lat.seconds:.0f}s ({lat.level})" for lat in result.hop_latencies]
        self._fill(self.route_table, [
            (hop.from_ or "Unknown", hop.ip or "", hop.by or "Unknown", hop.protocol or "Unknown",
             hop.timestamp.isoformat(), delay)
            for hop, delay in zip(result.received_hops, delays)
        ])
        for row, lat in enumerate(result.hop_latencies, start=1):
            item = self.route_table.item(row, 5)
            if item:
                item.setForeground(QColor(LATENCY_COLORS[lat.level]))

        self._fill(self.urls_table, [
            (u.url, u.reputation.score if u.reputation else "", "yes" if u.suspicious else "no",
             ", ".join(sorted(u.reputation.categories)) if u.reputation else "",
             u.reputation.source if u.reputation else "", "; ".join(u.reasons))
            for u in result.urls
        ])

        self._fill(self.atts_table, [
            (d.filename, att.content_type or "", f"{d.size_mb:.2f}", d.risk_level, f"-{d.total_penalty}%")
            for att, d in zip(result.attachments, result.attachment_assessment.details)
        ])

    def closeEvent(self, event):
        self.session.cancel()
        if self._thread is not None:
            self._thread.quit()
            self._thread.wait()
        self.session.close()
        super().closeEvent(event)
