"""
Table catalog: read-only introspection of the live schema.

MySQL/MariaDB are read through information_schema; every other dialect
goes through the SQLAlchemy inspector. Filter values are always bound
parameters, never spliced into SQL text.
"""
import logging
from typing import Iterable, Optional

from sqlalchemy import column, func, inspect, select, table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import CompileError, NoSuchTableError, SQLAlchemyError

from config import settings
from core.errors import CatalogError
from models.gen import LiveColumn, LiveTable

logger = logging.getLogger(__name__)

_IS_TABLES = table(
    "tables",
    column("table_schema"),
    column("table_name"),
    column("table_comment"),
    column("table_type"),
    column("create_time"),
    column("update_time"),
    schema="information_schema",
)

_IS_COLUMNS = table(
    "columns",
    column("table_schema"),
    column("table_name"),
    column("column_name"),
    column("column_comment"),
    column("column_type"),
    column("column_key"),
    column("is_nullable"),
    column("extra"),
    column("ordinal_position"),
    schema="information_schema",
)


def _like_prefix(prefix: str) -> str:
    escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"{escaped}%"


class TableCatalog:
    """Lists live tables and columns, hiding generator-owned and scheduler tables."""

    def __init__(
        self,
        engine: Engine,
        excluded_prefixes: Optional[Iterable[str]] = None,
        own_tables: Optional[Iterable[str]] = None,
    ):
        self.engine = engine
        self.excluded_prefixes = tuple(
            settings.excluded_prefix_list if excluded_prefixes is None else excluded_prefixes
        )
        self.own_tables = frozenset(
            (settings.gen_table_name, settings.gen_column_table_name) if own_tables is None else own_tables
        )

    @property
    def _uses_information_schema(self) -> bool:
        return self.engine.dialect.name in ("mysql", "mariadb")

    def _is_excluded(self, name: str) -> bool:
        return name in self.own_tables or name.startswith(self.excluded_prefixes)

    # ── Public API ──────────────────────────────────────────────────────────

    def list_tables(
        self,
        name_filter: Optional[str] = None,
        comment_filter: Optional[str] = None,
        limit: int = 15,
        offset: int = 0,
        exclude: Iterable[str] = (),
    ) -> tuple[int, list[LiveTable]]:
        """Paginated live tables. `exclude` hides extra names, e.g. already-imported tables."""
        try:
            if self._uses_information_schema:
                return self._is_list_tables(name_filter, comment_filter, limit, offset, set(exclude))
            return self._insp_list_tables(name_filter, comment_filter, limit, offset, set(exclude))
        except SQLAlchemyError as e:
            raise CatalogError(f"Could not list tables: {e}") from e

    def list_tables_by_names(self, names: Iterable[str]) -> list[LiveTable]:
        wanted = [n for n in dict.fromkeys(names) if n and not self._is_excluded(n)]
        if not wanted:
            return []
        try:
            if self._uses_information_schema:
                stmt = self._is_tables_select().where(_IS_TABLES.c.table_name.in_(wanted))
                with self.engine.connect() as conn:
                    return [LiveTable(**row) for row in conn.execute(stmt).mappings()]
            insp = inspect(self.engine)
            existing = set(insp.get_table_names())
            return [self._insp_table(insp, n) for n in wanted if n in existing]
        except SQLAlchemyError as e:
            raise CatalogError(f"Could not look up tables {wanted}: {e}") from e

    def list_columns(self, table_name: str) -> list[LiveColumn]:
        """Columns of one table ordered by position; empty if the table does not exist."""
        try:
            if self._uses_information_schema:
                return self._is_list_columns(table_name)
            return self._insp_list_columns(table_name)
        except SQLAlchemyError as e:
            raise CatalogError(f"Could not read columns of '{table_name}': {e}") from e

    # ── information_schema strategy ─────────────────────────────────────────

    def _is_filters(self):
        conditions = [
            _IS_TABLES.c.table_schema == func.database(),
            _IS_TABLES.c.table_type == "BASE TABLE",
        ]
        for prefix in self.excluded_prefixes:
            conditions.append(_IS_TABLES.c.table_name.not_like(_like_prefix(prefix), escape="\\"))
        if self.own_tables:
            conditions.append(_IS_TABLES.c.table_name.not_in(sorted(self.own_tables)))
        return conditions

    def _is_tables_select(self):
        return select(
            _IS_TABLES.c.table_name.label("table_name"),
            func.coalesce(_IS_TABLES.c.table_comment, "").label("table_comment"),
            _IS_TABLES.c.create_time.label("create_time"),
            _IS_TABLES.c.update_time.label("update_time"),
        ).where(*self._is_filters())

    def _is_list_tables(self, name_filter, comment_filter, limit, offset, exclude):
        conditions = []
        if name_filter:
            conditions.append(func.lower(_IS_TABLES.c.table_name).contains(name_filter.lower(), autoescape=True))
        if comment_filter:
            conditions.append(func.lower(_IS_TABLES.c.table_comment).contains(comment_filter.lower(), autoescape=True))
        if exclude:
            conditions.append(_IS_TABLES.c.table_name.not_in(sorted(exclude)))

        count_stmt = select(func.count()).select_from(_IS_TABLES).where(*self._is_filters(), *conditions)
        rows_stmt = (
            self._is_tables_select()
            .where(*conditions)
            .order_by(_IS_TABLES.c.table_name)
            .limit(limit)
            .offset(offset)
        )
        with self.engine.connect() as conn:
            total = conn.execute(count_stmt).scalar() or 0
            rows = [LiveTable(**row) for row in conn.execute(rows_stmt).mappings()]
        return total, rows

    def _is_list_columns(self, table_name: str) -> list[LiveColumn]:
        c = _IS_COLUMNS.c
        stmt = (
            select(
                c.column_name.label("column_name"),
                func.coalesce(c.column_comment, "").label("column_comment"),
                c.column_type.label("column_type"),
                c.ordinal_position.label("sort"),
                c.column_key.label("column_key"),
                c.is_nullable.label("is_nullable"),
                c.extra.label("extra"),
            )
            .where(c.table_schema == func.database(), c.table_name == table_name)
            .order_by(c.ordinal_position)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        columns = []
        for row in rows:
            is_pk = (row["column_key"] or "").upper() == "PRI"
            columns.append(LiveColumn(
                column_name=row["column_name"],
                column_comment=row["column_comment"],
                column_type=row["column_type"],
                sort=int(row["sort"]),
                is_pk=is_pk,
                is_required=(row["is_nullable"] or "").upper() == "NO" and not is_pk,
                is_increment="auto_increment" in (row["extra"] or "").lower(),
            ))
        return columns

    # ── Inspector strategy (SQLite, PostgreSQL, …) ──────────────────────────

    def _insp_table(self, insp, name: str) -> LiveTable:
        try:
            comment = (insp.get_table_comment(name) or {}).get("text") or ""
        except NotImplementedError:
            comment = ""
        return LiveTable(table_name=name, table_comment=comment)

    def _insp_list_tables(self, name_filter, comment_filter, limit, offset, exclude):
        insp = inspect(self.engine)
        names = sorted(
            n for n in insp.get_table_names()
            if not self._is_excluded(n) and n not in exclude
        )
        if name_filter:
            names = [n for n in names if name_filter.lower() in n.lower()]
        tables = [self._insp_table(insp, n) for n in names]
        if comment_filter:
            tables = [t for t in tables if comment_filter.lower() in t.table_comment.lower()]
        return len(tables), tables[offset:offset + limit]

    def _insp_list_columns(self, table_name: str) -> list[LiveColumn]:
        insp = inspect(self.engine)
        try:
            raw_cols = insp.get_columns(table_name)
            pk_cols = set(insp.get_pk_constraint(table_name).get("constrained_columns") or [])
        except NoSuchTableError:
            logger.warning("Table %s no longer exists", table_name)
            return []

        columns = []
        for position, col in enumerate(raw_cols, start=1):
            raw_type = self._type_string(col["type"])
            is_pk = col["name"] in pk_cols
            columns.append(LiveColumn(
                column_name=col["name"],
                column_comment=col.get("comment") or "",
                column_type=raw_type,
                sort=position,
                is_pk=is_pk,
                is_required=not col.get("nullable", True) and not is_pk,
                is_increment=self._is_increment(col, raw_type, is_pk, len(pk_cols)),
            ))
        return columns

    def _type_string(self, sa_type) -> str:
        try:
            compiled = sa_type.compile(dialect=self.engine.dialect)
        except CompileError:
            compiled = str(sa_type)
        return compiled.lower().replace(", ", ",")

    def _is_increment(self, col: dict, raw_type: str, is_pk: bool, pk_count: int) -> bool:
        if col.get("autoincrement") is True:
            return True
        if self.engine.dialect.name == "sqlite":
            # INTEGER PRIMARY KEY aliases the rowid
            return is_pk and pk_count == 1 and raw_type == "integer"
        default = str(col.get("default") or "")
        return is_pk and (default.startswith("nextval(") or bool(col.get("identity")))
