"""
Metadata store: persistence for the two generator tables.

All writes of one operation go through `transaction()`, which commits on a
clean exit and rolls back on any exception.
"""
import logging
from contextlib import contextmanager
from typing import Iterable, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from core.errors import Conflict, GenError, TransactionFailure
from models.gen import ColumnSpec, GenTableCriteria
from models.gen_table import GenTable, GenTableColumn

logger = logging.getLogger(__name__)


class MetadataStore:
    """CRUD over GenTable / GenTableColumn bound to one session."""

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def transaction(self):
        """Unit of work: everything since the last commit is committed or rolled back together."""
        try:
            yield self.session
            self.session.commit()
        except GenError:
            self.session.rollback()
            raise
        except StaleDataError as e:
            self.session.rollback()
            raise Conflict("Table metadata was modified concurrently, reload and retry") from e
        except IntegrityError as e:
            self.session.rollback()
            raise Conflict(f"Metadata uniqueness violated: {e.orig}") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Metadata transaction rolled back")
            raise TransactionFailure(f"Metadata write failed: {e}") from e
        except Exception:
            self.session.rollback()
            raise

    # ── Tables ──────────────────────────────────────────────────────────────

    def get_table(self, table_id: int) -> Optional[GenTable]:
        return self.session.get(GenTable, table_id)

    def find_latest_by_name(self, table_name: str) -> Optional[GenTable]:
        stmt = (
            select(GenTable)
            .where(GenTable.table_name == table_name)
            .order_by(GenTable.id.desc())
            .limit(1)
        )
        return self.session.scalars(stmt).first()

    def imported_names(self, names: Optional[Iterable[str]] = None) -> set[str]:
        stmt = select(GenTable.table_name)
        if names is not None:
            stmt = stmt.where(GenTable.table_name.in_(list(names)))
        return set(self.session.scalars(stmt))

    def list_tables(self, criteria: GenTableCriteria) -> tuple[int, list[GenTable]]:
        conditions = []
        if criteria.table_name:
            conditions.append(GenTable.table_name.contains(criteria.table_name, autoescape=True))
        if criteria.table_comment:
            conditions.append(GenTable.table_comment.contains(criteria.table_comment, autoescape=True))
        if criteria.start_time:
            conditions.append(GenTable.create_time >= criteria.start_time)
        if criteria.end_time:
            conditions.append(GenTable.create_time <= criteria.end_time)

        total = self.session.scalar(select(func.count(GenTable.id)).where(*conditions)) or 0
        rows = self.session.scalars(
            select(GenTable)
            .where(*conditions)
            .order_by(GenTable.id.desc())
            .limit(criteria.page_size)
            .offset(criteria.offset)
        ).all()
        return total, list(rows)

    def create_table(self, **fields) -> GenTable:
        table = GenTable(**fields)
        self.session.add(table)
        self.session.flush()
        return table

    def update_table(self, table: GenTable, **fields) -> GenTable:
        for key, value in fields.items():
            setattr(table, key, value)
        self.session.flush()
        return table

    def delete_tables(self, ids: list[int]) -> int:
        """Delete table records and every column record they own."""
        self.session.flush()
        self.session.execute(delete(GenTableColumn).where(GenTableColumn.table_id.in_(ids)))
        result = self.session.execute(delete(GenTable).where(GenTable.id.in_(ids)))
        return result.rowcount or 0

    # ── Columns ─────────────────────────────────────────────────────────────

    def list_columns(self, table_id: int) -> list[GenTableColumn]:
        stmt = (
            select(GenTableColumn)
            .where(GenTableColumn.table_id == table_id)
            .order_by(GenTableColumn.sort, GenTableColumn.id)
        )
        return list(self.session.scalars(stmt))

    def bulk_create_columns(self, table_id: int, specs: Iterable[ColumnSpec]) -> list[GenTableColumn]:
        rows = [GenTableColumn(table_id=table_id, **spec.model_dump()) for spec in specs]
        self.session.add_all(rows)
        self.session.flush()
        return rows

    def update_column(self, column: GenTableColumn, **fields) -> GenTableColumn:
        for key, value in fields.items():
            setattr(column, key, value)
        return column

    def delete_columns(self, ids: list[int]) -> int:
        if not ids:
            return 0
        self.session.flush()
        result = self.session.execute(delete(GenTableColumn).where(GenTableColumn.id.in_(ids)))
        return result.rowcount or 0
