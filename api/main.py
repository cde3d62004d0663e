"""
FastAPI Backend for SMS Transaction Extractor
RESTful API endpoints for extracting transactions from notification messages
"""

from fastapi import FastAPI, File, UploadFile, Form, HTTPException
from fastapi.responses import FileResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import List, Optional
from pathlib import Path
from datetime import date, datetime
import tempfile
import sys

# Add backend to path
backend_path = Path(__file__).parent.parent / 'backend'
sys.path.insert(0, str(backend_path))

# Import backend modules
from config import config
from logging_config import get_logger, setup_logging
from extractors.patterns import BUILTIN_PATTERNS, build_registry
from extractors.regex_extractor import TransactionExtractor
from loaders.message_loader import MessageLoadError
from main import SMSBatchProcessor, annotate_record
from output.writer import ReportWriteError

setup_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="SMS Transaction Extractor API",
    description="Extract structured transactions from SMS and other notification messages",
    version=config.VERSION
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

REPORTS_DIR = config.OUTPUT_DIR / "api_reports"


class MessageIn(BaseModel):
    text: str = Field(..., description="Raw message body")
    sender: Optional[str] = Field(None, description="Sender address, e.g. VM-HDFCBK")
    received_on: Optional[date] = Field(None, description="Date the message arrived")


class ExtractRequest(MessageIn):
    patterns: Optional[List[str]] = Field(None, description="Pattern names to try, in priority order")


class ExtractBatchRequest(BaseModel):
    messages: List[MessageIn]
    patterns: Optional[List[str]] = None


def _reports_dir() -> Path:
    REPORTS_DIR.mkdir(parents=True, exist_ok=True)
    return REPORTS_DIR


def _report_path(filename: str) -> Path:
    """Resolve a report filename, refusing paths outside the report directory."""
    reports_dir = _reports_dir().resolve()
    report_path = (reports_dir / filename).resolve()
    if report_path.parent != reports_dir:
        raise HTTPException(status_code=400, detail="Invalid report filename")
    return report_path


def _build_extractor(patterns: Optional[List[str]]) -> TransactionExtractor:
    try:
        registry = build_registry(patterns if patterns else config.enabled_patterns())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return TransactionExtractor(registry)


def _extract_one(extractor: TransactionExtractor, message: MessageIn) -> dict:
    result = extractor.extract_result(message.text, received_on=message.received_on)
    if result.matched:
        record = annotate_record(result.record, message.text, message.sender)
        return {"status": result.status.value, "record": record.to_dict(), "error": None}
    return result.to_dict()


@app.get("/")
async def root():
    """Root endpoint - API information"""
    return {
        "message": "SMS Transaction Extractor API",
        "version": config.VERSION,
        "endpoints": {
            "POST /extract": "Extract a transaction from one message",
            "POST /extract/batch": "Extract transactions from many messages",
            "POST /process": "Process message files and generate a report",
            "GET /patterns": "List available patterns",
            "GET /health": "Health check",
            "GET /reports/{filename}": "Download generated report"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat()
    }


@app.get("/patterns")
async def list_patterns():
    """List built-in patterns and which ones are enabled by default"""
    enabled = set(config.enabled_patterns())
    return {
        "patterns": [
            {
                "name": pattern.name,
                "priority": pattern.priority,
                "description": pattern.description,
                "enabled": pattern.name in enabled
            }
            for pattern in sorted(BUILTIN_PATTERNS.values(), key=lambda p: p.priority)
        ]
    }


@app.post("/extract")
async def extract(request: ExtractRequest):
    """
    Extract a transaction from a single message.

    Returns `status` ("match", "no_match" or "fault"), the `record` on a
    match and the `error` on a fault.
    """
    extractor = _build_extractor(request.patterns)
    return _extract_one(extractor, request)


@app.post("/extract/batch")
async def extract_batch(request: ExtractBatchRequest):
    """Extract transactions from a list of messages"""
    extractor = _build_extractor(request.patterns)
    results = [_extract_one(extractor, message) for message in request.messages]

    counts = {"match": 0, "no_match": 0, "fault": 0}
    for result in results:
        counts[result["status"]] += 1

    logger.info(f"Batch extraction: {counts['match']}/{len(results)} messages matched")
    return {"total": len(results), "counts": counts, "results": results}


@app.post("/process")
async def process_messages(
    files: List[UploadFile] = File(..., description="One or more message files (.txt, .jsonl, .csv)"),
    keywords: str = Form("", description="Comma-separated merchant/bank keywords"),
    start_month: Optional[str] = Form(None, description="Start month (YYYY-MM)"),
    end_month: Optional[str] = Form(None, description="End month (YYYY-MM)"),
    report_format: str = Form("pdf", description="pdf, json or csv"),
    spam_filter: bool = Form(False, description="Skip promotional messages")
):
    """
    Process uploaded message files and generate a report.

    Returns a JSON response with the pipeline summary and a download link.
    """
    keyword_list = [k.strip() for k in keywords.split(',') if k.strip()]
    suffix = f".{report_format.lower().lstrip('.')}"
    if suffix not in config.REPORT_FORMATS:
        raise HTTPException(status_code=400, detail=f"Unsupported report format: {report_format}")

    temp_paths = []
    try:
        for uploaded_file in files:
            content = await uploaded_file.read()
            is_valid, error = config.validate_file(uploaded_file.filename or "", len(content))
            if not is_valid:
                raise HTTPException(status_code=400, detail=f"{uploaded_file.filename}: {error}")

            with tempfile.NamedTemporaryFile(delete=False, suffix=Path(uploaded_file.filename).suffix) as tmp_file:
                tmp_file.write(content)
                temp_paths.append(tmp_file.name)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        report_filename = f"report_{timestamp}{suffix}"
        report_path = _reports_dir() / report_filename

        processor = SMSBatchProcessor(spam_filter=spam_filter)
        summary = processor.process(
            input_paths=temp_paths,
            output_path=str(report_path),
            keywords=keyword_list,
            start_month=start_month or None,
            end_month=end_month or None
        )

    except HTTPException:
        raise
    except (ValueError, MessageLoadError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ReportWriteError as e:
        logger.error(f"Report generation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
    finally:
        for tmp_path in temp_paths:
            Path(tmp_path).unlink(missing_ok=True)

    logger.info(f"Report generated: {report_filename}")

    return {
        "status": "success",
        "message": "Report generated successfully",
        "report": {
            "filename": report_filename,
            "download_url": f"/reports/{report_filename}",
            "generated_at": datetime.now().isoformat()
        },
        "summary": summary
    }


@app.get("/reports/{filename}")
async def download_report(filename: str):
    """Download a generated report."""
    report_path = _report_path(filename)

    if not report_path.exists():
        raise HTTPException(status_code=404, detail="Report not found")

    media_types = {".pdf": "application/pdf", ".json": "application/json", ".csv": "text/csv"}
    return FileResponse(
        path=str(report_path),
        media_type=media_types.get(report_path.suffix, "application/octet-stream"),
        filename=filename
    )


@app.get("/reports")
async def list_reports():
    """List all available reports"""
    reports = []

    for report_file in _reports_dir().iterdir():
        if report_file.suffix not in config.REPORT_FORMATS:
            continue
        stat = report_file.stat()
        reports.append({
            "filename": report_file.name,
            "created_at": datetime.fromtimestamp(stat.st_ctime).isoformat(),
            "size_bytes": stat.st_size,
            "download_url": f"/reports/{report_file.name}"
        })

    reports.sort(key=lambda x: x['created_at'], reverse=True)

    return {
        "total_reports": len(reports),
        "reports": reports
    }


@app.delete("/reports/{filename}")
async def delete_report(filename: str):
    """Delete a report file."""
    report_path = _report_path(filename)

    if not report_path.exists():
        raise HTTPException(status_code=404, detail="Report not found")

    try:
        report_path.unlink()
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"Error deleting report: {str(e)}")

    return {
        "status": "success",
        "message": f"Report {filename} deleted successfully"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
