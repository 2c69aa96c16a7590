"""Query language for filtering the ports catalog.

Query Language Examples:
    vim                          - free text in name, description or category
    name:lib                     - name contains "lib"
    category:editors             - category is exactly "editors"
    "text editor"                - phrase match
    !is:broken                   - NOT broken
    NOT license:gpl              - NOT licensed under anything containing "gpl"
    name:foo && category:bar     - both
    name:foo || category:bar     - either
    since:2w                     - updated in the last two weeks
"""

from .evaluator import DEFAULT_FREE_TEXT_FIELDS, MATCHERS, matches, matches_expression, matches_group
from .parser import FIELD_ALIASES, STATUS_MARKERS, WILDCARD, classify, parse, scan


__all__ = [
    "DEFAULT_FREE_TEXT_FIELDS",
    "FIELD_ALIASES",
    "MATCHERS",
    "STATUS_MARKERS",
    "WILDCARD",
    "classify",
    "matches",
    "matches_expression",
    "matches_group",
    "parse",
    "scan",
]
