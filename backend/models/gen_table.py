"""ORM models for the generator's own metadata tables."""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from config import settings
from core.database import Base


class GenTable(Base):
    """One imported source table."""

    __tablename__ = settings.gen_table_name

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_name = Column(String(200), unique=True, nullable=False, index=True)
    table_comment = Column(String(200), nullable=False, default="")
    sub_table_name = Column(String(200), nullable=False, default="")
    sub_table_fk = Column(String(200), nullable=False, default="")
    author_name = Column(String(100), nullable=False, default="")
    entity_name = Column(String(100), nullable=False, default="")
    module_name = Column(String(60), nullable=False, default="")
    function_name = Column(String(60), nullable=False, default="")
    gen_tpl = Column(String(20), nullable=False, default="crud")  # crud | tree
    remarks = Column(String(200), nullable=False, default="")
    version = Column(Integer, nullable=False)
    create_time = Column(DateTime(timezone=True), server_default=func.now())
    update_time = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    columns = relationship(
        "GenTableColumn",
        back_populates="table",
        cascade="all, delete-orphan",
        order_by="GenTableColumn.sort",
    )

    # Bumped on every UPDATE; a stale writer gets StaleDataError
    __mapper_args__ = {"version_id_col": version}


class GenTableColumn(Base):
    """One column of an imported table, with its classified UI semantics."""

    __tablename__ = settings.gen_column_table_name

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_id = Column(Integer, ForeignKey(f"{settings.gen_table_name}.id", ondelete="CASCADE"), nullable=False, index=True)
    column_name = Column(String(200), nullable=False)
    column_comment = Column(String(200), nullable=False, default="")
    column_type = Column(String(100), nullable=False, default="")
    column_length = Column(Integer, nullable=False, default=0)
    field_name = Column(String(100), nullable=False, default="")
    field_type = Column(String(20), nullable=False, default="string")
    is_pk = Column(Boolean, nullable=False, default=False)
    is_increment = Column(Boolean, nullable=False, default=False)
    is_required = Column(Boolean, nullable=False, default=False)
    is_insert = Column(Boolean, nullable=False, default=False)
    is_edit = Column(Boolean, nullable=False, default=False)
    is_list = Column(Boolean, nullable=False, default=False)
    is_query = Column(Boolean, nullable=False, default=False)
    query_type = Column(String(10), nullable=False, default="=")
    html_type = Column(String(20), nullable=False, default="input")
    dict_type = Column(String(200), nullable=False, default="")
    sort = Column(Integer, nullable=False, default=0)
    create_time = Column(DateTime(timezone=True), server_default=func.now())
    update_time = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    table = relationship("GenTable", back_populates="columns")
