import pytest
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.dialects import mysql
from sqlalchemy.exc import OperationalError
from core.errors import CatalogError
from core.table_catalog import TableCatalog


def test_list_tables_hides_generator_and_scheduler_tables(catalog):
    total, rows = catalog.list_tables()
    names = [r.table_name for r in rows]
    assert names == ["demo_order", "la_article_cate", "la_demo_order"]
    assert total == 3
    assert "la_gen_table" not in names
    assert "qrtz_triggers" not in names
    assert "gen_scratch" not in names


def test_list_tables_filters_and_paginates(catalog):
    total, rows = catalog.list_tables(name_filter="ORDER")
    assert total == 2
    assert [r.table_name for r in rows] == ["demo_order", "la_demo_order"]

    total, rows = catalog.list_tables(limit=1, offset=1)
    assert total == 3
    assert [r.table_name for r in rows] == ["la_article_cate"]


def test_list_tables_excludes_extra_names(catalog):
    total, rows = catalog.list_tables(exclude={"demo_order"})
    assert total == 2
    assert "demo_order" not in [r.table_name for r in rows]


def test_list_tables_by_names_is_exact(catalog):
    rows = catalog.list_tables_by_names(["demo_order", "demo", "qrtz_triggers", "missing"])
    assert [r.table_name for r in rows] == ["demo_order"]
    assert rows[0].table_comment == ""


def test_list_columns_reports_keys_and_nullability(catalog):
    columns = catalog.list_columns("demo_order")
    assert [c.column_name for c in columns] == ["id", "order_no", "status", "remark", "create_time"]
    assert [c.sort for c in columns] == [1, 2, 3, 4, 5]

    by_name = {c.column_name: c for c in columns}
    assert by_name["id"].is_pk is True
    assert by_name["id"].is_increment is True
    assert by_name["id"].is_required is False
    assert by_name["order_no"].column_type == "varchar(32)"
    assert by_name["order_no"].is_required is True
    assert by_name["remark"].is_required is False
    assert by_name["remark"].column_type == "text"


def test_list_columns_keeps_decimal_scale(catalog):
    by_name = {c.column_name: c for c in catalog.list_columns("la_demo_order")}
    assert by_name["amount"].column_type == "decimal(10,2)"


def test_list_columns_of_missing_table_is_empty(catalog):
    assert catalog.list_columns("no_such_table") == []


def test_custom_exclusions(engine):
    catalog = TableCatalog(engine, excluded_prefixes=["la_"], own_tables=[])
    _, rows = catalog.list_tables()
    assert [r.table_name for r in rows] == ["demo_order", "gen_scratch", "qrtz_triggers"]


def test_unreachable_database_raises_catalog_error(tmp_path):
    broken = create_engine(f"sqlite:///{tmp_path / 'missing-dir' / 'live.db'}")
    with pytest.raises(CatalogError):
        TableCatalog(broken).list_tables()


def mysql_catalog():
    fake_engine = MagicMock()
    fake_engine.dialect.name = "mysql"
    fake_engine.connect.return_value.__exit__.return_value = False
    conn = fake_engine.connect.return_value.__enter__.return_value
    catalog = TableCatalog(fake_engine, excluded_prefixes=["qrtz_", "gen_"],
                           own_tables=["la_gen_table", "la_gen_table_column"])
    return catalog, conn


def compile_mysql(stmt):
    compiled = stmt.compile(dialect=mysql.dialect())
    return str(compiled), compiled.params


def test_information_schema_filters_are_bound():
    catalog, _ = mysql_catalog()
    sql, params = compile_mysql(catalog._is_tables_select())

    assert "information_schema.tables" in sql
    for literal in ("BASE TABLE", "qrtz", "la_gen_table"):
        assert literal not in sql
    values = list(params.values())
    assert "BASE TABLE" in values
    assert "qrtz\\_%" in values
    assert "gen\\_%" in values
    assert ["la_gen_table", "la_gen_table_column"] in values


def test_information_schema_name_filter_is_bound():
    catalog, conn = mysql_catalog()
    count_result = MagicMock()
    count_result.scalar.return_value = 1
    rows_result = MagicMock()
    rows_result.mappings.return_value = [
        {"table_name": "demo_order", "table_comment": "Orders", "create_time": None, "update_time": None},
    ]
    conn.execute.side_effect = [count_result, rows_result]

    hostile = "x' OR '1'='1"
    total, rows = catalog.list_tables(name_filter=hostile, exclude={"la_article"}, limit=5, offset=10)

    assert total == 1
    assert [r.table_name for r in rows] == ["demo_order"]
    assert rows[0].table_comment == "Orders"
    for call in conn.execute.call_args_list:
        sql, params = compile_mysql(call.args[0])
        assert hostile.lower() not in sql
        assert "la_article" not in sql
    _, row_params = compile_mysql(conn.execute.call_args_list[1].args[0])
    assert hostile.lower() in row_params.values()


def test_information_schema_columns_map_flags():
    catalog, conn = mysql_catalog()
    conn.execute.return_value.mappings.return_value.all.return_value = [
        {"column_name": "id", "column_comment": "", "column_type": "int(11) unsigned", "sort": 1,
         "column_key": "PRI", "is_nullable": "NO", "extra": "auto_increment"},
        {"column_name": "order_no", "column_comment": "Order number", "column_type": "varchar(32)", "sort": 2,
         "column_key": "UNI", "is_nullable": "NO", "extra": ""},
        {"column_name": "remark", "column_comment": "", "column_type": "text", "sort": 3,
         "column_key": "", "is_nullable": "YES", "extra": None},
    ]

    columns = catalog.list_columns("demo_order")

    assert [(c.column_name, c.is_pk, c.is_required, c.is_increment) for c in columns] == [
        ("id", True, False, True),
        ("order_no", False, True, False),
        ("remark", False, False, False),
    ]
    assert columns[1].column_comment == "Order number"
    sql, params = compile_mysql(conn.execute.call_args.args[0])
    assert "demo_order" not in sql
    assert "demo_order" in params.values()


def test_information_schema_errors_become_catalog_errors():
    catalog, conn = mysql_catalog()
    conn.execute.side_effect = OperationalError("SELECT", {}, Exception("server has gone away"))
    with pytest.raises(CatalogError):
        catalog.list_columns("demo_order")
