"""/api/gen/*: import, synchronize, edit, preview and download generated code."""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from starlette.background import BackgroundTask

from config import settings
from core.code_generator import CodeGenerator
from core.database import engine, get_db
from core.errors import GenError
from core.metadata_store import MetadataStore
from core.table_catalog import TableCatalog
from models.gen import (
    DbTableCriteria,
    DbTablePage,
    DeleteTablesRequest,
    EditTableRequest,
    GenTableCriteria,
    GenTableDetail,
    GenTablePage,
    ImportResponse,
    SyncResponse,
)

router = APIRouter(prefix="/gen", tags=["gen"])
logger = logging.getLogger(__name__)


def get_catalog() -> TableCatalog:
    return TableCatalog(engine)


def get_generator(
    db: Session = Depends(get_db),
    catalog: TableCatalog = Depends(get_catalog),
) -> CodeGenerator:
    return CodeGenerator(MetadataStore(db), catalog)


def _http_error(e: GenError) -> HTTPException:
    if e.status_code >= 500:
        logger.error("%s: %s", type(e).__name__, e)
    return HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/list", response_model=GenTablePage)
def list_generated(
    page_no: int = Query(1, ge=1),
    page_size: int = Query(15, ge=1, le=500),
    table_name: Optional[str] = None,
    table_comment: Optional[str] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    gen: CodeGenerator = Depends(get_generator),
):
    criteria = GenTableCriteria(
        page_no=page_no,
        page_size=page_size,
        table_name=table_name,
        table_comment=table_comment,
        start_time=start_time,
        end_time=end_time,
    )
    return gen.list_generated(criteria)


@router.get("/db", response_model=DbTablePage)
def list_db_tables(
    page_no: int = Query(1, ge=1),
    page_size: int = Query(15, ge=1, le=500),
    table_name: Optional[str] = None,
    table_comment: Optional[str] = None,
    gen: CodeGenerator = Depends(get_generator),
):
    criteria = DbTableCriteria(page_no=page_no, page_size=page_size, table_name=table_name, table_comment=table_comment)
    try:
        return gen.list_db_tables(criteria)
    except GenError as e:
        raise _http_error(e) from e


@router.get("/detail", response_model=GenTableDetail)
def detail(id: int, gen: CodeGenerator = Depends(get_generator)):
    try:
        return gen.detail(id)
    except GenError as e:
        raise _http_error(e) from e


@router.post("/importTable", response_model=ImportResponse, status_code=201)
def import_table(tables: str = Query(..., description="Comma-separated table names"),
                 gen: CodeGenerator = Depends(get_generator)):
    try:
        return gen.import_tables(tables)
    except GenError as e:
        raise _http_error(e) from e


@router.post("/editTable", response_model=GenTableDetail)
def edit_table(req: EditTableRequest, gen: CodeGenerator = Depends(get_generator)):
    try:
        return gen.edit_table(req)
    except GenError as e:
        raise _http_error(e) from e


@router.post("/delTable")
def delete_tables(req: DeleteTablesRequest, gen: CodeGenerator = Depends(get_generator)):
    try:
        removed = gen.delete_tables(req.ids)
    except GenError as e:
        raise _http_error(e) from e
    return {"tables_removed": removed}


@router.post("/syncTable", response_model=SyncResponse)
def sync_table(id: int, gen: CodeGenerator = Depends(get_generator)):
    try:
        return gen.sync_table(id)
    except GenError as e:
        raise _http_error(e) from e


@router.get("/previewCode")
def preview_code(id: int, gen: CodeGenerator = Depends(get_generator)) -> dict[str, str]:
    try:
        return gen.preview_code(id)
    except GenError as e:
        raise _http_error(e) from e


@router.get("/downloadCode")
def download_code(tables: str = Query(..., description="Comma-separated table names"),
                  gen: CodeGenerator = Depends(get_generator)):
    try:
        archive = gen.download_code(tables)
    except GenError as e:
        raise _http_error(e) from e
    return FileResponse(
        archive,
        media_type="application/zip",
        filename=settings.DOWNLOAD_FILENAME,
        background=BackgroundTask(archive.unlink, missing_ok=True),
    )
