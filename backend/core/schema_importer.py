"""
Schema importer: turns live tables into generator metadata records.

All requested tables are resolved and their columns read before anything is
written; the writes then run as one unit of work.
"""
import logging
import re
from typing import Iterable

from config import settings
from core.column_classifier import classify_column
from core.errors import Conflict, NotFound, ValidationFailure
from core.metadata_store import MetadataStore
from core.table_catalog import TableCatalog
from models.gen import ImportResponse, LiveTable

logger = logging.getLogger(__name__)

_TABLE_SUFFIX_RE = re.compile(r"(?:(?<![a-z])table|表)\s*$", re.IGNORECASE)


def to_entity_name(table_name: str) -> str:
    """PascalCase class name, with the configured table prefix stripped."""
    prefix = settings.TABLE_PREFIX
    name = table_name
    if settings.REMOVE_TABLE_PREFIX and prefix and name.startswith(prefix):
        name = name[len(prefix):]
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


def to_module_name(table_name: str) -> str:
    return table_name.split("_")[-1]


def to_function_name(table_comment: str) -> str:
    return _TABLE_SUFFIX_RE.sub("", table_comment or "").strip()


def parse_table_names(raw) -> list[str]:
    """Accept "a,b" or ["a", "b"]; reject anything that yields no names."""
    if isinstance(raw, str):
        raw = raw.split(",")
    names = [n.strip() for n in (raw or []) if n and n.strip()]
    if not names:
        raise ValidationFailure("At least one table name is required")
    return list(dict.fromkeys(names))


class SchemaImporter:
    def __init__(self, store: MetadataStore, catalog: TableCatalog):
        self.store = store
        self.catalog = catalog

    def import_tables(self, table_names: Iterable[str]) -> ImportResponse:
        names = parse_table_names(table_names)

        live_tables = self.catalog.list_tables_by_names(names)
        if not live_tables:
            raise NotFound(f"None of the tables {names} exist")

        already = self.store.imported_names(t.table_name for t in live_tables)
        if already:
            raise Conflict(f"Tables already imported: {sorted(already)}")

        # All catalog reads happen before the write transaction opens
        plan = [(t, self.catalog.list_columns(t.table_name)) for t in live_tables]

        with self.store.transaction():
            for live_table, live_columns in plan:
                record = self.store.create_table(**self._table_fields(live_table))
                specs = [classify_column(col) for col in live_columns]
                self.store.bulk_create_columns(record.id, specs)
                logger.info("Imported %s as %s (%d columns)", live_table.table_name, record.entity_name, len(specs))

        imported = [t.table_name for t in live_tables]
        missing = sorted(set(names) - set(imported))
        if missing:
            logger.warning("Skipped tables not found in the live schema: %s", missing)
        return ImportResponse(tables_imported=len(imported), tables=imported)

    @staticmethod
    def _table_fields(live_table: LiveTable) -> dict:
        return {
            "table_name": live_table.table_name,
            "table_comment": live_table.table_comment or "",
            "author_name": settings.GEN_AUTHOR,
            "entity_name": to_entity_name(live_table.table_name),
            "module_name": to_module_name(live_table.table_name),
            "function_name": to_function_name(live_table.table_comment),
            "gen_tpl": "crud",
        }
