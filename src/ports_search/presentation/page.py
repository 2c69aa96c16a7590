"""Search page shell: the form around the results container."""

from __future__ import annotations

from collections.abc import Sequence
from html import escape


FREE_TEXT_CHECKBOXES = (
    ("name", "Name"),
    ("description", "Description"),
    ("provides", "Provided files"),
    ("depends", "Dependencies"),
)


def _options(placeholder: str, values: Sequence[str]) -> str:
    options = [f'<option value="">{escape(placeholder)}</option>']
    options.extend(f'<option value="{escape(value)}">{escape(value)}</option>' for value in values)
    return "".join(options)


def render_search_page(
    *,
    query: str,
    results_html: str,
    categories: Sequence[str] = (),
    licenses: Sequence[str] = (),
    free_text_fields: frozenset[str] = frozenset(),
    title: str = "Search ports",
) -> str:
    checkboxes = "".join(
        f'<label><input type="checkbox" name="field" value="{value}"'
        f'{" checked" if value in free_text_fields else ""} /> {label}</label>'
        for value, label in FREE_TEXT_CHECKBOXES
    )
    hidden = "" if results_html else " hidden"
    return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>{escape(title)}</title>
  </head>
  <body>
    <form id="advanced-search-form" method="get" action="">
      <input type="search" name="q" value="{escape(query)}" placeholder="name:vim &amp;&amp; !is:broken" autofocus />
      <select name="cat">{_options("Category", categories)}</select>
      <select name="lic">{_options("License", licenses)}</select>
      <fieldset class="search-fields">{checkboxes}</fieldset>
      <button type="submit">Search</button>
    </form>
    <div id="search-results"{hidden}>{results_html}</div>
  </body>
</html>
"""
