"""
Schema synchronizer: refreshes stored column metadata from the live table.

Merge keyed by column name:
  matched      reclassify, but keep hand-tuned UI choices (see _carry_overrides)
  live-only    insert, appended after the current max sort
  stored-only  delete
"""
import logging
from datetime import datetime, timezone

from core.column_classifier import classify_column
from core.errors import InvalidState, NotFound
from core.metadata_store import MetadataStore
from core.table_catalog import TableCatalog
from models.gen import ColumnSpec, SyncResponse
from models.gen_table import GenTableColumn

logger = logging.getLogger(__name__)

# Fields the classifier owns on a matched column; id, table_id and sort stay put
_REFRESHED_FIELDS = (
    "column_comment", "column_type", "column_length", "field_name", "field_type",
    "is_pk", "is_increment", "is_required", "is_insert", "is_edit", "is_list", "is_query",
    "query_type", "html_type", "dict_type",
)


def _carry_overrides(spec: ColumnSpec, prev: GenTableColumn) -> ColumnSpec:
    """Keep administrator choices on a matched column.

    dict_type / query_type survive when the refreshed column is not list-visible;
    a non-empty dict_type also survives on list-visible columns.
    html_type / is_required survive when the stored column was customizable:
    required-and-insertable (and not a key), or editable.
    """
    updates = {}
    if not spec.is_list:
        updates["dict_type"] = prev.dict_type or ""
        updates["query_type"] = prev.query_type
    elif prev.dict_type:
        updates["dict_type"] = prev.dict_type
    if (prev.is_required and not prev.is_pk and prev.is_insert) or prev.is_edit:
        updates["html_type"] = prev.html_type
        updates["is_required"] = bool(prev.is_required)
    return spec.model_copy(update=updates) if updates else spec


class SchemaSynchronizer:
    def __init__(self, store: MetadataStore, catalog: TableCatalog):
        self.store = store
        self.catalog = catalog

    def sync(self, table_id: int) -> SyncResponse:
        table = self.store.get_table(table_id)
        if table is None:
            raise NotFound(f"Generator table {table_id} does not exist")

        stored = self.store.list_columns(table_id)
        if not stored:
            raise InvalidState(f"Generator table {table_id} has no stored columns to synchronize")

        live_columns = self.catalog.list_columns(table.table_name)
        if not live_columns:
            raise NotFound(f"Live table '{table.table_name}' no longer exists")

        prev_by_name = {col.column_name: col for col in stored}
        live_names = {col.column_name for col in live_columns}
        next_sort = max(col.sort for col in stored)

        updated, added = 0, []
        with self.store.transaction():
            for live in live_columns:
                spec = classify_column(live)
                prev = prev_by_name.get(live.column_name)
                if prev is not None:
                    spec = _carry_overrides(spec, prev)
                    self.store.update_column(prev, **spec.model_dump(include=set(_REFRESHED_FIELDS)))
                    updated += 1
                else:
                    next_sort += 1
                    added.append(spec.model_copy(update={"sort": next_sort}))

            if added:
                self.store.bulk_create_columns(table_id, added)

            removed_ids = [col.id for col in stored if col.column_name not in live_names]
            removed = self.store.delete_columns(removed_ids)

            # Version bump: a concurrent sync of this table now fails with Conflict
            self.store.update_table(table, update_time=datetime.now(timezone.utc))

        logger.info(
            "Synchronized %s: %d updated, %d added, %d removed",
            table.table_name, updated, len(added), removed,
        )
        return SyncResponse(
            table_id=table_id,
            columns_updated=updated,
            columns_added=len(added),
            columns_removed=removed,
        )
