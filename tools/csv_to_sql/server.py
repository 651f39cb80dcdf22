"""HTTP service for CSV to SQL conversion."""

import json
import re
import time
import uuid
from pathlib import Path
from typing import Dict, Optional

import click
import uvicorn
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from shared.cli import info
from shared.logger import get_logger, setup_logger

from .config import DEFAULT_UPLOAD_TTL_SECONDS, ConverterSettings
from .converter import DEFAULT_TABLE_NAME, CSVToSQL
from .errors import CSVParseError, CSVToSQLError
from .models import ConversionResult, PreviewResult, SQLDialect

logger = get_logger(__name__)

_TEMP_ID = re.compile(r"^[0-9a-f]{32}$")


class UploadStore:
    """
    Keeps uploads on disk between a preview and the following convert.

    Uploads older than ``max_age`` seconds are removed whenever a new one
    is saved, so previews that are never converted do not pile up.

    Attributes:
        directory: Folder holding the uploaded files
        max_age: Seconds an upload is kept
    """

    def __init__(self, directory: Path, max_age: int = DEFAULT_UPLOAD_TTL_SECONDS):
        self.directory = directory
        self.max_age = max_age

    def save(self, data: bytes) -> str:
        """Store an upload and return its id."""
        self.directory.mkdir(parents=True, exist_ok=True)
        self.sweep()
        file_id = uuid.uuid4().hex
        self.path_for(file_id).write_bytes(data)
        logger.debug(f"Stored upload {file_id} ({len(data)} bytes)")
        return file_id

    def sweep(self, now: Optional[float] = None) -> int:
        """
        Delete uploads older than max_age.

        Returns:
            Number of files removed
        """
        cutoff = (now if now is not None else time.time()) - self.max_age
        removed = 0
        for path in self.directory.glob("*.csv"):
            if not _TEMP_ID.match(path.stem):
                continue
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except FileNotFoundError:
                continue
        if removed:
            logger.info(f"Removed {removed} expired upload(s)")
        return removed

    def path_for(self, file_id: str) -> Path:
        """Resolve an upload id to its path; ids are validated to stay inside the folder."""
        if not _TEMP_ID.match(file_id):
            raise HTTPException(status_code=400, detail="Invalid temp_file_id")
        return self.directory / f"{file_id}.csv"

    def load(self, file_id: str) -> bytes:
        path = self.path_for(file_id)
        if not path.exists():
            raise HTTPException(status_code=404, detail="Uploaded file not found or already converted")
        return path.read_bytes()

    def discard(self, file_id: str) -> None:
        path = self.path_for(file_id)
        if path.exists():
            path.unlink()
            logger.debug(f"Removed upload {file_id}")


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CSVParseError(f"Error parsing CSV: file is not valid UTF-8 text ({e})")


def _parse_overrides(raw: Optional[str]) -> Dict[str, str]:
    if not raw:
        return {}
    try:
        overrides = json.loads(raw)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"type_overrides is not valid JSON: {e}")
    if not isinstance(overrides, dict):
        raise HTTPException(status_code=400, detail="type_overrides must be a JSON object")
    return overrides


async def _read_upload(upload: UploadFile, max_bytes: int) -> bytes:
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise HTTPException(status_code=413, detail=f"Upload too large (limit {max_bytes} bytes)")
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    return data


def create_app(settings: Optional[ConverterSettings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Converter settings (read from the environment if None)

    Returns:
        Configured FastAPI app
    """
    settings = settings or ConverterSettings.from_env()
    converter = CSVToSQL(settings=settings)
    store = UploadStore(settings.temp_dir, max_age=settings.upload_ttl_seconds)

    app = FastAPI(
        title="CSV to SQL Converter",
        description="Infer column types, check data quality and generate SQL from CSV files",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.store = store

    def analyze(data: bytes) -> PreviewResult:
        return converter.preview(converter.parse_table(_decode(data)))

    def generate(data: bytes, table_name: str, dialect: str, overrides: Dict[str, str]) -> ConversionResult:
        table = converter.parse_table(_decode(data))
        return converter.convert(table, table_name, dialect, overrides)

    @app.get("/")
    async def root():
        """Service status and limits."""
        return JSONResponse(
            content={
                "status": "running",
                "dialects": [d.value for d in SQLDialect],
                "max_upload_bytes": settings.max_upload_bytes,
                "max_insert_rows": settings.max_insert_rows,
                "batch_size": settings.batch_size,
            }
        )

    @app.post("/preview")
    async def preview(csv_file: UploadFile = File(...)):
        """Analyze an uploaded CSV and keep it for a later /convert."""
        data = await _read_upload(csv_file, settings.max_upload_bytes)

        try:
            result = await run_in_threadpool(analyze, data)
        except CSVToSQLError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception:
            logger.exception("Preview failed")
            raise HTTPException(status_code=500, detail="Server error")

        result.temp_file_id = await run_in_threadpool(store.save, data)
        logger.info(f"Previewed {csv_file.filename}: {result.row_count} rows")
        return JSONResponse(content=result.to_dict())

    @app.post("/convert")
    async def convert(
        csv_file: Optional[UploadFile] = File(None),
        temp_file_id: Optional[str] = Form(None),
        table_name: str = Form(DEFAULT_TABLE_NAME),
        dialect: str = Form(SQLDialect.POSTGRESQL.value),
        type_overrides: Optional[str] = Form(None),
    ):
        """Convert an uploaded (or previously previewed) CSV to SQL."""
        if temp_file_id:
            store.path_for(temp_file_id)
            path_id = temp_file_id
        elif csv_file is not None:
            path_id = None
        else:
            raise HTTPException(status_code=400, detail="No file provided")

        try:
            if path_id:
                data = await run_in_threadpool(store.load, path_id)
            else:
                data = await _read_upload(csv_file, settings.max_upload_bytes)

            overrides = _parse_overrides(type_overrides)
            result = await run_in_threadpool(
                generate, data, table_name or DEFAULT_TABLE_NAME, dialect, overrides
            )

        except CSVToSQLError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except HTTPException:
            raise
        except Exception:
            logger.exception("Conversion failed")
            raise HTTPException(status_code=500, detail="Server error")
        finally:
            if path_id:
                await run_in_threadpool(store.discard, path_id)

        return JSONResponse(content=result.to_dict())

    return app


app = create_app()


@click.command()
@click.option("--port", "-p", type=int, default=3000, show_default=True, help="Port to run server on")
@click.option("--host", default="127.0.0.1", show_default=True, help="Host to bind to")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def main(port: int, host: str, verbose: bool):
    """
    CSV to SQL Server - HTTP API for CSV to SQL conversion.

    Endpoints:
        GET  /         - Status and limits
        POST /preview  - Upload a CSV (field csv_file), get types and findings
        POST /convert  - Convert an upload or a previewed temp_file_id to SQL
    """
    log_level = "DEBUG" if verbose else "INFO"
    setup_logger(__name__, level=log_level)

    info(f"Starting CSV to SQL Converter on http://{host}:{port}")
    info("Press CTRL+C to stop")

    uvicorn.run(
        create_app(),
        host=host,
        port=port,
        log_level="info" if verbose else "error",
    )


if __name__ == "__main__":
    main()
