"""
Template renderer: Jinja2 rendering of generator metadata into source files.

The template store is a Jinja2 loader: templates are looked up by id
(e.g. "python/model.py.tpl") and rendered against a plain-dict context.
Undefined variables are errors, not empty strings.
"""
import logging
from typing import Optional, Sequence

from jinja2 import (
    BaseLoader,
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
)

from config import settings
from core.errors import RenderFailure, ValidationFailure

logger = logging.getLogger(__name__)

TPL_CRUD = "crud"
TPL_TREE = "tree"

_COMMON_TEMPLATES = (
    "python/model.py.tpl",
    "python/schemas.py.tpl",
    "python/service.py.tpl",
    "python/route.py.tpl",
    "vue/api.ts.tpl",
    "vue/edit.vue.tpl",
)

TEMPLATES_BY_MODE = {
    TPL_CRUD: _COMMON_TEMPLATES + ("vue/index.vue.tpl",),
    TPL_TREE: _COMMON_TEMPLATES + ("vue/index-tree.vue.tpl",),
}

_TABLE_FIELDS = (
    "id", "table_name", "table_comment", "sub_table_name", "sub_table_fk",
    "author_name", "entity_name", "module_name", "function_name", "gen_tpl", "remarks",
)
_COLUMN_FIELDS = (
    "column_name", "column_comment", "column_type", "column_length", "field_name", "field_type",
    "is_pk", "is_increment", "is_required", "is_insert", "is_edit", "is_list", "is_query",
    "query_type", "html_type", "dict_type", "sort",
)


def template_ids(gen_tpl: str) -> tuple[str, ...]:
    try:
        return TEMPLATES_BY_MODE[gen_tpl]
    except KeyError:
        raise ValidationFailure(f"Unknown generation template '{gen_tpl}'") from None


def _column_dict(column) -> dict:
    if isinstance(column, dict):
        return {key: column.get(key) for key in _COLUMN_FIELDS}
    return {key: getattr(column, key) for key in _COLUMN_FIELDS}


def build_context(
    table,
    columns: Sequence,
    sub_pk_column=None,
    sub_columns: Sequence = (),
) -> dict:
    """Variables for every template of one table. Pure: reads its inputs, returns new dicts."""
    base = {key: getattr(table, key) for key in _TABLE_FIELDS}
    cols = [_column_dict(c) for c in columns]
    primary_key = next((c for c in cols if c["is_pk"]), None)

    return {
        "table": base,
        "package_name": settings.PACKAGE_NAME,
        "entity_name": base["entity_name"],
        "module_name": base["module_name"],
        "function_name": base["function_name"] or base["table_comment"] or base["entity_name"],
        "author_name": base["author_name"],
        "columns": cols,
        "primary_key": primary_key,
        "insert_columns": [c for c in cols if c["is_insert"]],
        "edit_columns": [c for c in cols if c["is_edit"]],
        "list_columns": [c for c in cols if c["is_list"]],
        "query_columns": [c for c in cols if c["is_query"]],
        "dict_types": sorted({c["dict_type"] for c in cols if c["dict_type"]}),
        "is_tree": base["gen_tpl"] == TPL_TREE,
        "sub_table_name": base["sub_table_name"],
        "tree_parent": base["sub_table_fk"],
        "sub_pk_column": _column_dict(sub_pk_column) if sub_pk_column is not None else None,
        "sub_columns": [_column_dict(c) for c in sub_columns],
    }


def _pascal(value: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in str(value).split("_") if part)


def _camel(value: str) -> str:
    pascal = _pascal(value)
    return pascal[:1].lower() + pascal[1:]


class TemplateRenderer:
    """Renders every template of a table's mode; fails as a whole on the first error."""

    def __init__(self, loader: Optional[BaseLoader] = None):
        self._env = Environment(
            loader=loader or FileSystemLoader(settings.TEMPLATE_DIR),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.filters["pascal"] = _pascal
        self._env.filters["camel"] = _camel

    def render(self, template_id: str, context: dict) -> str:
        try:
            template = self._env.get_template(template_id)
            return template.render(**context)
        except TemplateNotFound as e:
            raise RenderFailure(template_id, f"template not found ({e.name})") from e
        except TemplateError as e:
            raise RenderFailure(template_id, str(e)) from e

    def render_all(self, gen_tpl: str, context: dict) -> dict[str, str]:
        rendered = {}
        for template_id in template_ids(gen_tpl):
            # fresh copy per template
            rendered[template_id] = self.render(template_id, dict(context))
        logger.debug("Rendered %d templates for %s", len(rendered), context.get("entity_name"))
        return rendered
