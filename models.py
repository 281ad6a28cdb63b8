"""
Pydantic models for the IRP5 Certificate Extractor
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal, Union
from datetime import datetime
from enum import Enum

from services.errors import ErrorKind


class PipelineStage(str, Enum):
    """States of the extraction pipeline"""
    LOADING = "loading"
    RASTERIZING = "rasterizing"
    DIRECT_TEXT_FALLBACK = "direct_text_fallback"
    RECOGNIZING = "recognizing"
    CLASSIFYING = "classifying"
    EXTRACTING = "extracting"
    CORRECTING = "correcting"
    DONE = "done"
    FAILED = "failed"


class ExtractionSource(str, Enum):
    """Which extraction path produced a document"""
    OCR_UPLOAD = "ocr_upload"
    FALLBACK_TEXT_EXTRACTION = "fallback_text_extraction"


class ExtractedDocument(BaseModel):
    """Amounts read from one IRP5 certificate (0 = not found)"""
    gross_remuneration: float = Field(0.0, description="Code 3601: Gross remuneration")
    paye_withheld: float = Field(0.0, description="Code 4102: PAYE withheld")
    uif_contribution: float = Field(0.0, description="Code 3605: Employee UIF contribution")
    retirement_fund: float = Field(0.0, description="Codes 4005/4006: Retirement fund contributions")
    medical_scheme: float = Field(0.0, description="Codes 3810/4474/4472: Medical scheme contributions")
    travel_allowance: float = Field(0.0, description="Code 3703: Travel allowance")
    medical_credits: float = Field(0.0, description="Code 4150: Medical scheme fees tax credit")
    total_tax: float = Field(0.0, description="Code 4149: Total tax, SDL and UIF")
    tax_year: str = Field(default_factory=lambda: str(datetime.now().year))
    source: ExtractionSource = ExtractionSource.OCR_UPLOAD
    uploaded_at: datetime = Field(default_factory=datetime.now)
    confidence: int = Field(0, ge=0, le=100, description="Percentage of fields populated")

    model_config = {"validate_assignment": True}

    @field_validator(
        "gross_remuneration", "paye_withheld", "uif_contribution", "retirement_fund",
        "medical_scheme", "travel_allowance", "medical_credits", "total_tax",
    )
    @classmethod
    def _non_negative(cls, value: float) -> float:
        return abs(value)


class ProcessingProgress(BaseModel):
    """One progress event reported to the caller"""
    percent: float = Field(ge=0, le=100)
    message: str
    stage: PipelineStage


class ExtractionSuccess(BaseModel):
    """Successful pipeline outcome"""
    success: Literal[True] = True
    data: ExtractedDocument
    confidence: int
    warnings: List[str] = Field(default_factory=list)


class ExtractionFailure(BaseModel):
    """Failed pipeline outcome; message is safe to show to the user"""
    success: Literal[False] = False
    error_kind: ErrorKind
    message: str


ExtractionOutcome = Union[ExtractionSuccess, ExtractionFailure]


class ExtractionResponse(BaseModel):
    """API response for extraction endpoint"""
    success: bool
    message: str
    data: Optional[ExtractedDocument] = None
    confidence: Optional[int] = None
    warnings: List[str] = Field(default_factory=list)
    error_kind: Optional[ErrorKind] = None
    progress: List[ProcessingProgress] = Field(default_factory=list)


class BatchItemResult(BaseModel):
    """Result for one file of a batch request"""
    filename: str
    success: bool
    data: Optional[ExtractedDocument] = None
    confidence: Optional[int] = None
    warnings: List[str] = Field(default_factory=list)
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None


class BatchExtractionResponse(BaseModel):
    """API response for batch extraction endpoint"""
    total_files: int
    successful: int
    failed: int
    results: List[BatchItemResult] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """API health check response"""
    status: str
    version: str
    ocr_available: bool = False
    timestamp: datetime = Field(default_factory=datetime.now)
