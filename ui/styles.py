from PySide6.QtGui import QColor, QPalette

SCORE_COLORS = (
    (80, "#3fb950"),   # good
    (50, "#d29922"),   # caution
    (0, "#f85149"),    # danger
)

LATENCY_COLORS = {
    "high": "#f85149",
    "moderate": "#d29922",
    "normal": "#3fb950",
}


def score_color(score: int) -> str:
    for threshold, color in SCORE_COLORS:
        if score >= threshold:
            return color
    return SCORE_COLORS[-1][1]


def apply_dark_theme(app):
    """Dark Fusion palette with a teal accent."""
    app.setStyle("Fusion")

    palette = QPalette()

    white = QColor(255, 255, 255)
    dark_bg = QColor(13, 17, 23)
    darker_bg = QColor(1, 4, 9)
    light_text = QColor(230, 237, 243)
    disabled_text = QColor(110, 118, 129)
    accent = QColor(20, 150, 160)

    palette.setColor(QPalette.Window, dark_bg)
    palette.setColor(QPalette.WindowText, light_text)
    palette.setColor(QPalette.Base, darker_bg)
    palette.setColor(QPalette.AlternateBase, dark_bg)
    palette.setColor(QPalette.Text, light_text)
    palette.setColor(QPalette.Button, dark_bg)
    palette.setColor(QPalette.ButtonText, light_text)
    palette.setColor(QPalette.Highlight, accent)
    palette.setColor(QPalette.HighlightedText, white)
    palette.setColor(QPalette.Disabled, QPalette.Text, disabled_text)
    palette.setColor(QPalette.Disabled, QPalette.ButtonText, disabled_text)

    app.setPalette(palette)

    app.setStyleSheet("""
        QTabBar::tab {
            background: #161b22;
            color: #8b949e;
            padding: 8px 18px;
        }
        QTabBar::tab:selected {
            color: #e6edf3;
            border-bottom: 2px solid #1496a0;
        }
        QPushButton {
            background-color: #1496a0;
            color: white;
            border-radius: 4px;
            padding: 6px 16px;
            font-weight: bold;
        }
        QPushButton:disabled {
            background-color: #30363d;
            color: #6e7681;
        }
        QPlainTextEdit, QTableWidget {
            background-color: #0d1117;
            border: 1px solid #30363d;
            color: #e6edf3;
        }
    """)
