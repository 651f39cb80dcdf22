"""Tests for the CSV to SQL HTTP service."""

import json
import os
import time

import pytest
from fastapi.testclient import TestClient

from tools.csv_to_sql import server
from tools.csv_to_sql.config import ConverterSettings
from tools.csv_to_sql.converter import CSVToSQL
from tools.csv_to_sql.server import UploadStore, create_app

PEOPLE_CSV = b"id,name,zip\n1,Alice,02134\n2,Bob,10001\n"


@pytest.fixture
def settings(tmp_path):
    return ConverterSettings(temp_dir=tmp_path / "uploads")


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))


def upload(content=PEOPLE_CSV, name="people.csv"):
    return {"csv_file": (name, content, "text/csv")}


class TestStatus:
    """Test the status endpoint."""

    def test_root(self, client):
        """Test status lists dialects and limits."""
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "running"
        assert data["dialects"] == ["postgresql", "mysql", "sqlserver", "sqlite", "oracle"]
        assert data["batch_size"] == 500


class TestPreview:
    """Test POST /preview."""

    def test_preview(self, client, settings):
        """Test columns, validation and a stored temp file are returned."""
        response = client.post("/preview", files=upload())

        assert response.status_code == 200
        data = response.json()
        assert data["row_count"] == 2
        assert data["column_count"] == 3
        assert [c["sanitized_name"] for c in data["columns"]] == ["id", "name", "zip"]
        assert data["columns"][0]["detected_type"] == "INTEGER"
        assert data["columns"][1]["sample_values"] == ["Alice", "Bob"]
        assert set(data["validation"]) == {"passed", "warnings", "errors"}
        assert (settings.temp_dir / f"{data['temp_file_id']}.csv").exists()

    def test_preview_no_rows(self, client):
        """Test a header-only CSV is rejected."""
        response = client.post("/preview", files=upload(b"id,name\n"))

        assert response.status_code == 400
        assert "No data rows" in response.json()["detail"]

    def test_preview_empty_file(self, client):
        """Test an empty upload is rejected."""
        response = client.post("/preview", files=upload(b""))
        assert response.status_code == 400

    def test_preview_too_large(self, tmp_path):
        """Test uploads over the limit are rejected."""
        client = TestClient(create_app(ConverterSettings(max_upload_bytes=10, temp_dir=tmp_path)))
        response = client.post("/preview", files=upload())
        assert response.status_code == 413

    def test_preview_not_utf8(self, client):
        """Test binary uploads are rejected."""
        response = client.post("/preview", files=upload(b"id\n\xff\xfe\n"))
        assert response.status_code == 400


class TestConvert:
    """Test POST /convert."""

    def test_convert_after_preview(self, client, settings):
        """Test converting a previewed file removes it afterwards."""
        file_id = client.post("/preview", files=upload()).json()["temp_file_id"]

        response = client.post(
            "/convert",
            data={"temp_file_id": file_id, "table_name": "People", "dialect": "mysql"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["create_table"].startswith("CREATE TABLE people (")
        assert data["create_table"].endswith("ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;")
        assert "(1, 'Alice', 02134)" in data["insert"]
        assert data["row_count"] == 2
        assert data["column_count"] == 3
        assert data["dialect"] == "mysql"
        assert data["truncated"] is False
        assert not (settings.temp_dir / f"{file_id}.csv").exists()

    def test_convert_twice(self, client):
        """Test a temp file can only be converted once."""
        file_id = client.post("/preview", files=upload()).json()["temp_file_id"]
        client.post("/convert", data={"temp_file_id": file_id})

        response = client.post("/convert", data={"temp_file_id": file_id})
        assert response.status_code == 404

    def test_convert_direct_upload_with_overrides(self, client):
        """Test overrides are applied and translated for the dialect."""
        response = client.post(
            "/convert",
            files=upload(),
            data={"dialect": "oracle", "type_overrides": json.dumps({"zip": "VARCHAR(10)"})},
        )

        assert response.status_code == 200
        data = response.json()
        assert "CREATE TABLE my_table (" in data["create_table"]
        assert "zip VARCHAR2(10)" in data["create_table"]
        assert "'02134'" in data["insert"]

    def test_convert_row_cap(self, tmp_path):
        """Test the configured row cap truncates output."""
        client = TestClient(create_app(ConverterSettings(max_insert_rows=1, temp_dir=tmp_path)))
        data = client.post("/convert", files=upload()).json()

        assert data["truncated"] is True
        assert "-- Note: only the first 1 of 2 rows were included" in data["insert"]

    def test_invalid_override(self, client):
        """Test an override outside the type grammar is rejected."""
        response = client.post(
            "/convert",
            files=upload(),
            data={"type_overrides": json.dumps({"zip": "TEXT); DROP TABLE x; --"})},
        )
        assert response.status_code == 400

    def test_overrides_not_json(self, client):
        """Test malformed override JSON is rejected."""
        response = client.post("/convert", files=upload(), data={"type_overrides": "{not json"})
        assert response.status_code == 400

    def test_unknown_dialect(self, client):
        """Test an unsupported dialect is rejected."""
        response = client.post("/convert", files=upload(), data={"dialect": "db2"})

        assert response.status_code == 400
        assert "Unsupported dialect" in response.json()["detail"]

    def test_no_file(self, client):
        """Test a request without a file or temp id is rejected."""
        response = client.post("/convert", data={"table_name": "x"})

        assert response.status_code == 400
        assert response.json()["detail"] == "No file provided"

    def test_invalid_temp_id(self, client):
        """Test temp ids cannot point outside the upload folder."""
        response = client.post("/convert", data={"temp_file_id": "../../etc/passwd"})
        assert response.status_code == 400

    def test_internal_failure(self, client, settings, monkeypatch):
        """Test unexpected errors give a generic 500 and remove the upload."""
        file_id = client.post("/preview", files=upload()).json()["temp_file_id"]

        def fail(self, *args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(CSVToSQL, "convert", fail)
        response = client.post("/convert", data={"temp_file_id": file_id})

        assert response.status_code == 500
        assert response.json()["detail"] == "Server error"
        assert not (settings.temp_dir / f"{file_id}.csv").exists()

    def test_work_runs_off_event_loop(self, client, monkeypatch):
        """Test parsing, conversion and file access go through the threadpool."""
        calls = []
        original = server.run_in_threadpool

        async def recording(func, *args, **kwargs):
            calls.append(func.__name__)
            return await original(func, *args, **kwargs)

        monkeypatch.setattr(server, "run_in_threadpool", recording)

        file_id = client.post("/preview", files=upload()).json()["temp_file_id"]
        client.post("/convert", data={"temp_file_id": file_id})

        assert calls == ["analyze", "save", "load", "generate", "discard"]


class TestUploadStore:
    """Test upload retention."""

    def test_expired_uploads_removed_on_save(self, tmp_path):
        """Test old uploads are swept when a new one is stored."""
        store = UploadStore(tmp_path, max_age=60)
        old_id = store.save(b"a\n1\n")
        old_path = store.path_for(old_id)
        stale = time.time() - 120
        os.utime(old_path, (stale, stale))

        new_id = store.save(b"a\n2\n")

        assert not old_path.exists()
        assert store.path_for(new_id).exists()

    def test_recent_and_foreign_files_kept(self, tmp_path):
        """Test only expired upload files are removed."""
        store = UploadStore(tmp_path, max_age=60)
        recent_id = store.save(b"a\n1\n")
        foreign = tmp_path / "notes.csv"
        foreign.write_text("keep", encoding="utf-8")
        stale = time.time() - 120
        os.utime(foreign, (stale, stale))

        assert store.sweep() == 0
        assert store.path_for(recent_id).exists()
        assert foreign.exists()

    def test_preview_sweeps(self, client, settings):
        """Test abandoned previews are cleaned up by later uploads."""
        abandoned = client.post("/preview", files=upload()).json()["temp_file_id"]
        path = settings.temp_dir / f"{abandoned}.csv"
        stale = time.time() - settings.upload_ttl_seconds - 10
        os.utime(path, (stale, stale))

        client.post("/preview", files=upload())

        assert not path.exists()
