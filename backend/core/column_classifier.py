"""
Column classifier: maps a live column to logical type, form widget,
query operator and CRUD visibility.

Rules run in a fixed order: base type first, then name-suffix overrides,
then visibility flags. Changing the order changes generated forms.
"""
import re
from typing import Optional

from models.gen import ColumnSpec, LiveColumn

# ── Type families ─────────────────────────────────────────────────────────────
CHAR_TYPES = frozenset({"char", "varchar", "nvarchar", "varchar2"})
TEXT_TYPES = frozenset({"tinytext", "text", "mediumtext", "longtext"})
TIME_TYPES = frozenset({"datetime", "time", "date", "timestamp"})
NUMBER_TYPES = frozenset({
    "tinyint", "smallint", "mediumint", "int", "integer",
    "bit", "bigint", "float", "double", "decimal",
    "numeric", "real",
})

# ── Column-name sets ──────────────────────────────────────────────────────────
TIME_NAMES = frozenset({"create_time", "update_time", "delete_time", "start_time", "end_time"})
NOT_ADD = frozenset({"id", "is_delete", "create_time", "update_time", "delete_time"})
NOT_EDIT = frozenset({"is_delete", "create_time", "update_time", "delete_time"})
NOT_LIST = frozenset({"id", "intro", "content", "is_delete", "create_time", "update_time", "delete_time"})
NOT_QUERY = frozenset({"is_delete", "create_time", "update_time", "delete_time"})

TEXTAREA_MIN_LENGTH = 500

_TYPE_RE = re.compile(r"^\s*([a-z0-9_ ]+?)\s*(?:\(([^)]*)\))?(?:\s+.*)?$")


def parse_column_type(raw_type: str) -> tuple[str, int, Optional[int]]:
    """Split a declared type into (base type, length, scale).

    >>> parse_column_type("decimal(10,2) unsigned")
    ('decimal', 10, 2)
    >>> parse_column_type("datetime")
    ('datetime', 0, None)
    """
    normalized = (raw_type or "").strip().lower()
    match = _TYPE_RE.match(normalized)
    if not match:
        base = normalized.split("(", 1)[0].strip()
        return base, 0, None

    base, args = match.group(1).strip(), match.group(2)
    if not args:
        return base, 0, None

    parts = [p.strip() for p in args.split(",")]
    length = int(parts[0]) if parts[0].isdigit() else 0
    scale = int(parts[1]) if len(parts) > 1 and parts[1].isdigit() else None
    return base, length, scale


def classify_column(live: LiveColumn) -> ColumnSpec:
    """Classify one live column. Pure: same input, same output."""
    base_type, length, scale = parse_column_type(live.column_type)
    name = live.column_name
    lower_name = name.lower()

    field_type = "string"
    html_type = "input"
    query_type = "="

    # Base pass: character/text, then temporal (type or name), then numeric
    if base_type in CHAR_TYPES or base_type in TEXT_TYPES:
        if length >= TEXTAREA_MIN_LENGTH or base_type in TEXT_TYPES:
            html_type = "textarea"
    elif base_type in TIME_TYPES or lower_name in TIME_NAMES:
        field_type = "date"
        html_type = "datetime"
    elif base_type in NUMBER_TYPES:
        field_type = "float" if scale is not None else "int"

    # Name-suffix overrides
    if lower_name.endswith(("name", "title", "mobile")):
        query_type = "LIKE"

    if lower_name.endswith("status") or lower_name in ("is_show", "is_disable"):
        html_type = "radio"
    elif lower_name.endswith(("type", "sex")):
        html_type = "select"
    elif lower_name.endswith("image"):
        html_type = "imageUpload"
    elif lower_name.endswith("file"):
        html_type = "fileUpload"
    elif lower_name.endswith("content"):
        html_type = "editor"

    # CRUD visibility
    is_insert = lower_name not in NOT_ADD
    is_edit = lower_name not in NOT_EDIT
    is_required = live.is_required and is_edit
    is_list = lower_name not in NOT_LIST and not live.is_pk
    is_query = lower_name not in NOT_QUERY and not live.is_pk

    return ColumnSpec(
        column_name=name,
        column_comment=live.column_comment,
        column_type=live.column_type,
        column_length=length,
        field_name=name,
        field_type=field_type,
        is_pk=live.is_pk,
        is_increment=live.is_increment,
        is_required=is_required,
        is_insert=is_insert,
        is_edit=is_edit,
        is_list=is_list,
        is_query=is_query,
        query_type=query_type,
        html_type=html_type,
        sort=live.sort,
    )
