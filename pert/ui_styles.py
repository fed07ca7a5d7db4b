from typing import Dict, Any

THEMES = {
    "Warm Clay": {
        "bg": "#f7f5f2",
        "surface": "#ffffff",
        "ink": "#1f2328",
        "muted": "#5f6c7b",
        "accent": "#ff6b4a",
        "border": "#e2ded7",
        "critical": "#ff6b4a",
        "critical_soft": "#ffd2c5",
        "noncritical": "#2c7a7b",
        "dummy": "#8a8f98",
        "node_crit": "#ffc2b3",
        "node_noncrit": "#d7eef0",
        "graph_edge": "#c7bfb4",
    },
    "Nordic Blue": {
        "bg": "#f3f6fb",
        "surface": "#ffffff",
        "ink": "#1c2433",
        "muted": "#5b6b7f",
        "accent": "#3b82f6",
        "border": "#dbe3f2",
        "critical": "#f97316",
        "critical_soft": "#ffe2d1",
        "noncritical": "#0f766e",
        "dummy": "#94a3b8",
        "node_crit": "#ffd6c7",
        "node_noncrit": "#d9f0ff",
        "graph_edge": "#c7d3e6",
    },
}

DEFAULT_THEME = "Warm Clay"


def get_active_theme(theme_name: str) -> Dict[str, Any]:
    return THEMES.get(theme_name, THEMES[DEFAULT_THEME])


APP_CSS = """
<style>
:root {
    --pert-bg: __PERT_BG__;
    --pert-surface: __PERT_SURFACE__;
    --pert-ink: __PERT_INK__;
    --pert-muted: __PERT_MUTED__;
    --pert-accent: __PERT_ACCENT__;
    --pert-border: __PERT_BORDER__;
}
.stApp {
    background: var(--pert-bg);
}
[data-testid="stAppViewContainer"] h1,
[data-testid="stAppViewContainer"] h2,
[data-testid="stAppViewContainer"] h3,
[data-testid="stAppViewContainer"] p,
[data-testid="stAppViewContainer"] label {
    color: var(--pert-ink);
}
[data-testid="stAppViewContainer"] .stCaption,
[data-testid="stAppViewContainer"] small {
    color: var(--pert-muted);
}
[data-testid="stSidebar"] {
    background: var(--pert-surface);
    border-right: 1px solid var(--pert-border);
}
[data-testid="stMetricValue"] {
    color: var(--pert-accent);
}
</style>
"""


def get_theme_css(theme: Dict[str, Any]) -> str:
    """
    Returns the CSS for the application with tokens replaced by theme values.
    """
    css = APP_CSS
    replacements = {
        "__PERT_BG__": theme["bg"],
        "__PERT_SURFACE__": theme["surface"],
        "__PERT_INK__": theme["ink"],
        "__PERT_MUTED__": theme["muted"],
        "__PERT_ACCENT__": theme["accent"],
        "__PERT_BORDER__": theme["border"],
    }
    for token, value in replacements.items():
        css = css.replace(token, value)
    return css
