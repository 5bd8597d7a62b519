"""Theme definitions for the TUI.

This module hides the color palette. The two participants get distinct
accents (primary for LLM 1, secondary for LLM 2) so a glance tells the
panels apart.
"""

from textual.theme import Theme

DUET_NIGHT = Theme(
    name="duet-night",
    primary="#7aa2f7",      # Blue - LLM 1
    secondary="#bb9af7",    # Violet - LLM 2
    accent="#e0af68",       # Amber - turn badges
    foreground="#c0caf5",
    background="#16161e",
    success="#9ece6a",
    warning="#ff9e64",
    error="#f7768e",
    surface="#1a1b26",
    panel="#1f2335",
    dark=True,
    variables={
        "border": "#3b4261",
        "border-blurred": "#292e42",
        "scrollbar": "#292e42",
        "scrollbar-hover": "#3b4261",
        "scrollbar-active": "#7aa2f7",
        "scrollbar-background": "#1f2335",
        "input-selection-background": "#7aa2f7 30%",
        "footer-key-foreground": "#e0af68",
        "footer-background": "#16161e",
        "text-muted": "#565f89",
        "button-color-foreground": "#16161e",
    },
)

DUET_DAY = Theme(
    name="duet-day",
    primary="#2e7de9",
    secondary="#9854f1",
    accent="#8c6c3e",
    foreground="#3760bf",
    background="#e1e2e7",
    success="#587539",
    warning="#b15c00",
    error="#f52a65",
    surface="#e9e9ed",
    panel="#d0d5e3",
    dark=False,
    variables={
        "border": "#a8aecb",
        "text-muted": "#848cb5",
        "footer-key-foreground": "#8c6c3e",
    },
)

THEMES = (DUET_NIGHT, DUET_DAY)
