from __future__ import annotations

"""
Design tokens for the todo app (light slate).

Pages use the STYLE_* constants instead of long inline class strings.
"""

C_FONT_STACK = '"Inter", system-ui, -apple-system, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif'

# CSS braces are doubled because this is an f-string.
APP_FONT_CSS = f"""
<link rel="preconnect" href="https://fonts.googleapis.com">
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&display=swap" rel="stylesheet">
<style>
  :root, body, .q-body {{
    font-family: {C_FONT_STACK};
    letter-spacing: -0.01em;
    color-scheme: light;
  }}
  body, .q-body, .nicegui-content {{
    background: #f8fafc !important;
    color: #0f172a !important;
  }}
  .q-card, .q-btn {{
    box-shadow: none !important;
  }}
</style>
"""

STYLE_BG = "min-h-screen w-full bg-slate-50 flex items-start justify-center px-4"
STYLE_CARD = "w-full max-w-md mt-8 p-6 bg-white rounded-xl border border-slate-200 shadow-md"
STYLE_PAGE_TITLE = "text-2xl font-bold text-slate-900"
STYLE_MUTED = "text-sm text-slate-500"
STYLE_ERROR = "text-sm text-rose-600"

STYLE_INPUT = "w-full text-sm"
STYLE_BTN_PRIMARY = "bg-sky-500 text-white rounded-lg px-4 py-2 hover:bg-sky-600"
STYLE_BTN_SUCCESS = "bg-emerald-500 text-white rounded-lg px-4 py-2 hover:bg-emerald-600"
STYLE_BTN_DANGER = "bg-rose-500 text-white rounded-lg px-4 py-2 hover:bg-rose-600"
STYLE_BTN_SMALL_SUCCESS = "bg-emerald-500 text-white rounded px-2 py-1 text-sm"
STYLE_BTN_SMALL_MUTED = "bg-slate-500 text-white rounded px-2 py-1 text-sm"
STYLE_LINK_PRIMARY = "text-sky-500 hover:text-sky-700"
STYLE_LINK_DANGER = "text-rose-500 hover:text-rose-700"

STYLE_TODO_ROW = "w-full items-center justify-between p-2 border border-slate-200 rounded"
STYLE_TODO_TEXT = "text-sm text-slate-800"
STYLE_TODO_TEXT_DONE = "text-sm line-through text-slate-500"
