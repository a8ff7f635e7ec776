import io
import zipfile
import pytest
from unittest.mock import patch

def test_health_check(client):
    with patch("api.health._check_database", return_value={"status": "up", "dialect": "sqlite"}), \
         patch("api.health._check_templates", return_value={"status": "up", "path": "templates"}):

        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "services": {
                "database": {"status": "up", "dialect": "sqlite"},
                "templates": {"status": "up", "path": "templates"}
            }
        }

def test_health_check_degraded(client):
    with patch("api.health._check_templates", return_value={"status": "down", "error": "missing"}):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "degraded"

def test_import_list_and_detail(client):
    response = client.post("/api/gen/importTable", params={"tables": "demo_order"})
    assert response.status_code == 201
    assert response.json() == {"tables_imported": 1, "tables": ["demo_order"]}

    listing = client.get("/api/gen/list").json()
    assert listing["count"] == 1
    table_id = listing["lists"][0]["id"]

    detail = client.get("/api/gen/detail", params={"id": table_id}).json()
    assert detail["base"]["entity_name"] == "DemoOrder"
    assert [c["html_type"] for c in detail["columns"]] == ["input", "input", "radio", "textarea", "datetime"]

    db_tables = client.get("/api/gen/db").json()
    assert "demo_order" not in [t["table_name"] for t in db_tables["lists"]]

def test_import_errors_map_to_status_codes(client):
    assert client.post("/api/gen/importTable", params={"tables": " , "}).status_code == 400
    assert client.post("/api/gen/importTable", params={"tables": "missing"}).status_code == 404
    assert client.post("/api/gen/importTable", params={"tables": "demo_order"}).status_code == 201
    assert client.post("/api/gen/importTable", params={"tables": "demo_order"}).status_code == 409

def test_sync_and_delete(client):
    client.post("/api/gen/importTable", params={"tables": "demo_order"})
    table_id = client.get("/api/gen/list").json()["lists"][0]["id"]

    response = client.post("/api/gen/syncTable", params={"id": table_id})
    assert response.status_code == 200
    assert response.json()["columns_updated"] == 5

    response = client.post("/api/gen/delTable", json={"ids": [table_id]})
    assert response.json() == {"tables_removed": 1}
    assert client.get("/api/gen/detail", params={"id": table_id}).status_code == 404
    assert client.post("/api/gen/syncTable", params={"id": table_id}).status_code == 404

def test_edit_table_validation(client):
    client.post("/api/gen/importTable", params={"tables": "la_article_cate"})
    detail = client.get("/api/gen/list").json()["lists"][0]
    payload = {
        "id": detail["id"],
        "entity_name": "ArticleCate",
        "module_name": "cate",
        "gen_tpl": "tree",
    }
    assert client.post("/api/gen/editTable", json=payload).status_code == 400

    payload.update(sub_table_name="la_article_cate", sub_table_fk="pid")
    response = client.post("/api/gen/editTable", json=payload)
    assert response.status_code == 200
    assert response.json()["base"]["gen_tpl"] == "tree"

def test_preview_code(client):
    client.post("/api/gen/importTable", params={"tables": "demo_order"})
    table_id = client.get("/api/gen/list").json()["lists"][0]["id"]

    response = client.get("/api/gen/previewCode", params={"id": table_id})
    assert response.status_code == 200
    assert "class DemoOrder(Base):" in response.json()["python/model.py"]

def test_download_code(client):
    client.post("/api/gen/importTable", params={"tables": "demo_order"})

    response = client.get("/api/gen/downloadCode", params={"tables": "demo_order"})
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert "codegen.zip" in response.headers["content-disposition"]
    with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
        assert "python/order/route.py" in zf.namelist()

@pytest.mark.parametrize("tables", ["demo_order", "  "])
def test_download_before_import_fails(client, tables):
    response = client.get("/api/gen/downloadCode", params={"tables": tables})
    assert response.status_code in (400, 404)
