"""Pydantic schemas for live schema snapshots, classified columns and generator requests."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

FieldType = Literal["string", "int", "float", "date"]
HtmlType = Literal["input", "textarea", "select", "radio", "datetime", "imageUpload", "fileUpload", "editor"]
QueryType = Literal["=", "LIKE"]
GenTpl = Literal["crud", "tree"]


# ── Live schema snapshot (never persisted) ───────────────────────────────────

class LiveTable(BaseModel):
    table_name: str
    table_comment: str = ""
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None


class LiveColumn(BaseModel):
    column_name: str
    column_comment: str = ""
    column_type: str                # raw declared type, e.g. "varchar(100)"
    sort: int                       # ordinal position, 1-based
    is_pk: bool = False
    is_required: bool = False       # NOT NULL and not part of the primary key
    is_increment: bool = False


# ── Classifier output ────────────────────────────────────────────────────────

class ColumnSpec(BaseModel):
    """A live column after classification, ready to be stored."""
    column_name: str
    column_comment: str = ""
    column_type: str
    column_length: int = 0
    field_name: str
    field_type: FieldType = "string"
    is_pk: bool = False
    is_increment: bool = False
    is_required: bool = False
    is_insert: bool = False
    is_edit: bool = False
    is_list: bool = False
    is_query: bool = False
    query_type: QueryType = "="
    html_type: HtmlType = "input"
    dict_type: str = ""
    sort: int = 0


# ── Filters ──────────────────────────────────────────────────────────────────

class PageRequest(BaseModel):
    page_no: int = Field(1, ge=1)
    page_size: int = Field(15, ge=1, le=500)

    @property
    def offset(self) -> int:
        return (self.page_no - 1) * self.page_size


class GenTableCriteria(PageRequest):
    """Filter over imported table records; every field is optional."""
    table_name: Optional[str] = None       # substring match
    table_comment: Optional[str] = None    # substring match
    start_time: Optional[datetime] = None  # create_time >= start_time
    end_time: Optional[datetime] = None    # create_time <= end_time


class DbTableCriteria(PageRequest):
    """Filter over live tables that have not been imported yet."""
    table_name: Optional[str] = None
    table_comment: Optional[str] = None


# ── Responses ────────────────────────────────────────────────────────────────

class GenTableOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    table_name: str
    table_comment: str
    sub_table_name: str
    sub_table_fk: str
    author_name: str
    entity_name: str
    module_name: str
    function_name: str
    gen_tpl: str
    remarks: str
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None


class GenColumnOut(ColumnSpec):
    model_config = ConfigDict(from_attributes=True)

    id: int
    table_id: int


class GenTableDetail(BaseModel):
    base: GenTableOut
    columns: list[GenColumnOut]


class GenTablePage(BaseModel):
    page_no: int
    page_size: int
    count: int
    lists: list[GenTableOut]


class DbTablePage(BaseModel):
    page_no: int
    page_size: int
    count: int
    lists: list[LiveTable]


class ImportResponse(BaseModel):
    tables_imported: int
    tables: list[str]


class SyncResponse(BaseModel):
    table_id: int
    columns_updated: int
    columns_added: int
    columns_removed: int


# ── Requests ─────────────────────────────────────────────────────────────────

class EditColumnRequest(BaseModel):
    id: int
    column_comment: str = ""
    field_name: str
    is_required: bool = False
    is_insert: bool = False
    is_edit: bool = False
    is_list: bool = False
    is_query: bool = False
    query_type: QueryType = "="
    html_type: HtmlType = "input"
    dict_type: str = ""


class EditTableRequest(BaseModel):
    id: int
    table_comment: str = ""
    entity_name: str = Field(..., min_length=1)
    module_name: str = Field(..., min_length=1)
    function_name: str = ""
    author_name: str = ""
    gen_tpl: GenTpl = "crud"
    sub_table_name: str = ""
    sub_table_fk: str = ""
    remarks: str = ""
    columns: list[EditColumnRequest] = Field(default_factory=list)


class DeleteTablesRequest(BaseModel):
    ids: list[int] = Field(..., min_length=1)
