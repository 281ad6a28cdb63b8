"""
IRP5 Certificate Extractor API
FastAPI application for extracting tax amounts from South African IRP5 PDFs
"""
from fastapi import FastAPI, UploadFile, File
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool
from typing import List
import asyncio
import logging

from models import (
    BatchExtractionResponse,
    BatchItemResult,
    ExtractionFailure,
    ExtractionResponse,
    HealthResponse,
    ProcessingProgress,
)
from services.ocr_processor import TesseractEngine
from services.pipeline import ExtractionPipeline

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

# Initialize FastAPI app
app = FastAPI(
    title="IRP5 Certificate Extractor",
    description="API for extracting remuneration, tax and deduction amounts from IRP5 tax certificates",
    version=VERSION
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def create_pipeline() -> ExtractionPipeline:
    """One pipeline per document; instances are not shared between requests"""
    return ExtractionPipeline()


def _health() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=VERSION,
        ocr_available=TesseractEngine().is_available()
    )


@app.get("/", response_model=HealthResponse)
async def root():
    """Root endpoint - health check"""
    return _health()


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return _health()


@app.post("/api/extract", response_model=ExtractionResponse)
async def extract_irp5(file: UploadFile = File(...)):
    """
    Extract data from an IRP5 certificate PDF

    Args:
        file: PDF file to process

    Returns:
        ExtractionResponse with the extracted amounts, confidence, warnings and progress log
    """
    content = await file.read()
    progress: List[ProcessingProgress] = []

    logger.info(f"Processing file: {file.filename}")
    outcome = await run_in_threadpool(
        create_pipeline().process, content, file.filename, file.content_type, progress.append
    )

    if isinstance(outcome, ExtractionFailure):
        return ExtractionResponse(
            success=False,
            message=outcome.message,
            error_kind=outcome.error_kind,
            progress=progress
        )

    logger.info(f"Successfully extracted {file.filename} with confidence {outcome.confidence}%")
    return ExtractionResponse(
        success=True,
        message=f"Successfully extracted data from {file.filename}",
        data=outcome.data,
        confidence=outcome.confidence,
        warnings=outcome.warnings,
        progress=progress
    )


@app.post("/api/extract-batch", response_model=BatchExtractionResponse)
async def extract_batch(files: List[UploadFile] = File(...)):
    """
    Extract data from multiple IRP5 PDFs, each in its own pipeline

    Args:
        files: List of PDF files to process

    Returns:
        BatchExtractionResponse with results for each file
    """
    contents = [await file.read() for file in files]

    outcomes = await asyncio.gather(*(
        run_in_threadpool(create_pipeline().process, content, file.filename, file.content_type)
        for file, content in zip(files, contents)
    ))

    results = []
    for file, outcome in zip(files, outcomes):
        if isinstance(outcome, ExtractionFailure):
            results.append(BatchItemResult(
                filename=file.filename,
                success=False,
                error_kind=outcome.error_kind,
                error=outcome.message
            ))
        else:
            results.append(BatchItemResult(
                filename=file.filename,
                success=True,
                data=outcome.data,
                confidence=outcome.confidence,
                warnings=outcome.warnings
            ))

    successful = sum(1 for r in results if r.success)
    logger.info(f"Batch complete: {successful}/{len(files)} files extracted")

    return BatchExtractionResponse(
        total_files=len(files),
        successful=successful,
        failed=len(files) - successful,
        results=results
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
