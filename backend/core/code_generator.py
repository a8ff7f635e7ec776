"""
Code generator: the operations exposed over HTTP.

Ties the metadata store, table catalog, importer, synchronizer, renderer
and packager together. One instance per request.
"""
import logging
from pathlib import Path
from typing import Iterable, Optional

from core.artifact_packager import ArtifactPackager
from core.column_classifier import classify_column
from core.errors import NotFound, ValidationFailure
from core.metadata_store import MetadataStore
from core.schema_importer import SchemaImporter, parse_table_names
from core.schema_synchronizer import SchemaSynchronizer
from core.table_catalog import TableCatalog
from core.template_renderer import TPL_TREE, TemplateRenderer, build_context
from models.gen import (
    DbTableCriteria,
    DbTablePage,
    EditTableRequest,
    GenColumnOut,
    GenTableCriteria,
    GenTableDetail,
    GenTableOut,
    GenTablePage,
    ImportResponse,
    SyncResponse,
)
from models.gen_table import GenTable

logger = logging.getLogger(__name__)

_EDITABLE_COLUMN_FIELDS = {
    "column_comment", "field_name", "is_required", "is_insert", "is_edit",
    "is_list", "is_query", "query_type", "html_type", "dict_type",
}


class CodeGenerator:
    def __init__(
        self,
        store: MetadataStore,
        catalog: TableCatalog,
        renderer: Optional[TemplateRenderer] = None,
        packager: Optional[ArtifactPackager] = None,
    ):
        self.store = store
        self.catalog = catalog
        self.renderer = renderer or TemplateRenderer()
        self.packager = packager or ArtifactPackager()

    # ── Metadata listing ────────────────────────────────────────────────────

    def list_generated(self, criteria: GenTableCriteria) -> GenTablePage:
        total, rows = self.store.list_tables(criteria)
        return GenTablePage(
            page_no=criteria.page_no,
            page_size=criteria.page_size,
            count=total,
            lists=[GenTableOut.model_validate(r) for r in rows],
        )

    def list_db_tables(self, criteria: DbTableCriteria) -> DbTablePage:
        total, rows = self.catalog.list_tables(
            name_filter=criteria.table_name,
            comment_filter=criteria.table_comment,
            limit=criteria.page_size,
            offset=criteria.offset,
            exclude=self.store.imported_names(),
        )
        return DbTablePage(page_no=criteria.page_no, page_size=criteria.page_size, count=total, lists=rows)

    def detail(self, table_id: int) -> GenTableDetail:
        table = self._require_table(table_id)
        columns = self.store.list_columns(table_id)
        return GenTableDetail(
            base=GenTableOut.model_validate(table),
            columns=[GenColumnOut.model_validate(c) for c in columns],
        )

    # ── Metadata writes ─────────────────────────────────────────────────────

    def import_tables(self, table_names) -> ImportResponse:
        return SchemaImporter(self.store, self.catalog).import_tables(table_names)

    def sync_table(self, table_id: int) -> SyncResponse:
        return SchemaSynchronizer(self.store, self.catalog).sync(table_id)

    def edit_table(self, req: EditTableRequest) -> GenTableDetail:
        if req.gen_tpl == TPL_TREE and not (req.sub_table_name and req.sub_table_fk):
            raise ValidationFailure("Tree generation requires sub_table_name and sub_table_fk")

        table = self._require_table(req.id)
        columns_by_id = {c.id: c for c in self.store.list_columns(req.id)}
        unknown = [c.id for c in req.columns if c.id not in columns_by_id]
        if unknown:
            raise NotFound(f"Columns {unknown} do not belong to table {req.id}")

        with self.store.transaction():
            self.store.update_table(table, **req.model_dump(exclude={"id", "columns"}))
            for col_req in req.columns:
                self.store.update_column(
                    columns_by_id[col_req.id],
                    **col_req.model_dump(include=_EDITABLE_COLUMN_FIELDS),
                )
        logger.info("Edited generator table %s (%d columns)", table.table_name, len(req.columns))
        return self.detail(req.id)

    def delete_tables(self, ids: Iterable[int]) -> int:
        ids = list(dict.fromkeys(ids))
        if not ids:
            raise ValidationFailure("At least one table id is required")
        with self.store.transaction():
            removed = self.store.delete_tables(ids)
        logger.info("Deleted %d generator tables (requested %s)", removed, ids)
        return removed

    # ── Rendering ───────────────────────────────────────────────────────────

    def render_table(self, table: GenTable) -> dict[str, str]:
        columns = self.store.list_columns(table.id)
        sub_pk_column, sub_columns = self._sub_table_info(table)
        context = build_context(table, columns, sub_pk_column, sub_columns)
        return self.renderer.render_all(table.gen_tpl, context)

    def preview_code(self, table_id: int) -> dict[str, str]:
        table = self._require_table(table_id)
        rendered = self.render_table(table)
        return {template_id.removesuffix(".tpl"): code for template_id, code in rendered.items()}

    def download_code(self, table_names) -> Path:
        names = parse_table_names(table_names)
        bundles = []
        for name in names:
            table = self.store.find_latest_by_name(name)
            if table is None:
                raise NotFound(f"Table '{name}' has not been imported")
            bundles.append((table.module_name, self.render_table(table)))
        return self.packager.package(bundles)

    # ── Helpers ─────────────────────────────────────────────────────────────

    def _require_table(self, table_id: int) -> GenTable:
        table = self.store.get_table(table_id)
        if table is None:
            raise NotFound(f"Generator table {table_id} does not exist")
        return table

    def _sub_table_info(self, table: GenTable):
        """Primary key and columns of the tree sub-table, read live and classified."""
        if table.gen_tpl != TPL_TREE:
            return None, []
        if not (table.sub_table_name and table.sub_table_fk):
            raise ValidationFailure(f"Tree table '{table.table_name}' has no sub-table configured")

        live_columns = self.catalog.list_columns(table.sub_table_name)
        if not live_columns:
            raise NotFound(f"Sub-table '{table.sub_table_name}' does not exist")
        sub_columns = [classify_column(c) for c in live_columns]
        sub_pk = next((c for c in sub_columns if c.is_pk), None)
        return sub_pk, sub_columns
