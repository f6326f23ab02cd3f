"""
FastAPI backend service for payment extraction.
"""
from fastapi import FastAPI, File, UploadFile, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter
import logging
from typing import List

from payparse import OCRInput, PaymentRecord, build_ocr_records, default_config, parse_chat, summarize_by_currency

app = FastAPI(title="payparse Payment Extractor", version="1.0.0")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],  # Vite and other dev servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(List[PaymentRecord])


def _totals(records):
    return [total.model_dump(mode='json') for total in summarize_by_currency(records)]


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "payparse Payment Extractor API", "status": "healthy"}


@app.post("/parse/chat")
async def parse_chat_export(file: UploadFile = File(...)):
    """
    Extract payment messages from an exported chat transcript.

    Args:
        file: Uploaded .txt chat export

    Returns:
        Records, referenced attachments and skip statistics
    """
    if not file.filename or not file.filename.lower().endswith('.txt'):
        raise HTTPException(status_code=400, detail="File must be a .txt chat export")

    raw = await file.read()
    transcript = raw.decode('utf-8', errors='replace')
    logger.info(f"Processing chat export: {file.filename}")

    result = parse_chat(transcript)
    data = result.model_dump(mode='json')

    logger.info(f"Successfully parsed chat export: {len(result.records)} payments found")

    return JSONResponse(content={
        "success": True,
        "data": data,
        "summary": {
            "records_count": len(result.records),
            "attachments_count": len(result.attachments),
            "skipped_lines": result.skipped,
            "totals": _totals(result.records),
        }
    })


@app.post("/parse/receipt")
async def parse_receipt_text(payload: OCRInput):
    """
    Extract receipt items from text produced by an OCR engine.

    Args:
        payload: OCR text, source image filename and confidence (0-100)

    Returns:
        Records tagged with the source image
    """
    if not payload.text.strip():
        raise HTTPException(status_code=400, detail="OCR text is empty")

    records = build_ocr_records(payload.text, payload.image_ref, payload.confidence)
    logger.info(f"Extracted {len(records)} receipt items from {payload.image_ref or 'OCR text'}")

    return JSONResponse(content={
        "success": True,
        "data": _records_adapter.dump_python(records, mode='json'),
        "summary": {
            "records_count": len(records),
            "totals": _totals(records),
        }
    })


@app.get("/currencies")
async def list_currencies():
    """List supported currencies in matching priority order."""
    return JSONResponse(content={
        "success": True,
        "currencies": [
            currency.model_dump(mode='json') for currency in default_config().registry
        ],
        "fallback_currency": default_config().fallback_currency.value,
    })


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
