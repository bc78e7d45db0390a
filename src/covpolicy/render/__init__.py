from covpolicy.render.badge import format_badge
from covpolicy.render.html import format_html
from covpolicy.render.json import format_json
from covpolicy.render.text import render_result

__all__ = ["format_badge", "format_html", "format_json", "render_result"]
