"""
styles.py

Application stylesheets for the field editor - Light and Tailwind themes.

Both are light themes: the Gherkin token colors are defined against the
light "vs" editor base.
"""

LIGHT_STYLE = """
/* === Base Colors === */
QWidget {
    background-color: #f3f3f3;
    color: #1e1e1e;
    font-family: "Segoe UI", "SF Pro Display", sans-serif;
    font-size: 13px;
}

/* === Editor === */
QPlainTextEdit {
    background-color: #ffffff;
    color: #000000;
    border: 1px solid #d4d4d4;
    selection-background-color: #add6ff;
    selection-color: #000000;
}

QPlainTextEdit:focus {
    border: 1px solid #0078d4;
}

/* === Completion Popup === */
QListView {
    background-color: #f8f8f8;
    border: 1px solid #c8c8c8;
    padding: 2px;
}

QListView::item {
    padding: 3px 8px;
}

QListView::item:selected {
    background-color: #0060c0;
    color: #ffffff;
}

/* === Status === */
QLabel#statusLabel {
    color: #616161;
    padding: 2px 4px;
}

QLabel#statusLabel[error="true"] {
    color: #c72e0f;
}
"""

TAILWIND_STYLE = """
/* === Base Colors === */
QWidget {
    background-color: #f1f5f9;
    color: #1e293b;
    font-family: "Inter", "Segoe UI", sans-serif;
    font-size: 13px;
}

/* === Editor === */
QPlainTextEdit {
    background-color: #ffffff;
    color: #0f172a;
    border: 1px solid #cbd5e1;
    border-radius: 6px;
    selection-background-color: #c7d2fe;
    selection-color: #0f172a;
}

QPlainTextEdit:focus {
    border: 1px solid #6366f1;
}

/* === Completion Popup === */
QListView {
    background-color: #ffffff;
    border: 1px solid #cbd5e1;
    border-radius: 6px;
    padding: 4px;
}

QListView::item {
    padding: 4px 10px;
    border-radius: 4px;
}

QListView::item:selected {
    background-color: #6366f1;
    color: #ffffff;
}

/* === Status === */
QLabel#statusLabel {
    color: #64748b;
    padding: 2px 4px;
}

QLabel#statusLabel[error="true"] {
    color: #dc2626;
}
"""

STYLES = {
    "Light": LIGHT_STYLE,
    "Tailwind": TAILWIND_STYLE,
}

DEFAULT_STYLE = "Light"

# Line number area colors for the code editor
# background: slightly different from main editor background
# text: high contrast for readability
LINE_NUMBER_COLORS = {
    "Light": {
        "background": "#f3f3f3",      # Slightly darker than editor (#ffffff)
        "text": "#237893",            # Line numbers
        "text_active": "#0b216f",     # Active line text
        "current_line_bg": "#e8e8e8", # Current line background
    },
    "Tailwind": {
        "background": "#f1f5f9",      # Slightly darker than editor (#ffffff)
        "text": "#94a3b8",            # Dimmed text (slate-400)
        "text_active": "#1e293b",     # Active line text (slate-800)
        "current_line_bg": "#e2e8f0", # Current line background (slate-200)
    },
}
