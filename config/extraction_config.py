"""
Extraction Configuration
Centralized configuration for IRP5 upload checks, rendering, OCR, extraction and plausibility rules
"""

EXTRACTION_CONFIG = {
    # Upload pre-checks
    "input_limits": {
        "content_type": "application/pdf",
        "max_bytes": 10 * 1024 * 1024,  # 10MB
        "min_bytes": 1024,               # Smaller files are empty or truncated
        "suspicious_filename_markers": ["password", "encrypted"],
        "pdf_header": b"%PDF-",
    },

    # Rasterization settings
    "rendering": {
        "max_pages": 3,             # IRP5 data lives on the first pages
        "scale": 1.5,               # Magnification over 72 DPI (108 DPI)
        "base_dpi": 72,
        "page_timeout_seconds": 30,
    },

    # Tesseract settings
    "ocr": {
        "language": "eng",
        "page_timeout_seconds": 30,
        "char_whitelist": (
            "0123456789"
            "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
            "abcdefghijklmnopqrstuvwxyz"
            ".,()-:/"
        ),
        "base_config": "--oem 3 --psm 6 -c preserve_interword_spaces=1",
        "page_marker": "\n--- PAGE {page_number} ---\n",
    },

    # Certificate detection
    "classification": {
        "min_indicators": 2,
        "min_text_length": 100,
    },

    # Magnitude checks and final guard clauses
    "plausibility": {
        "contribution_ceiling": 10_000_000,
        "gross_min": 1_000,
        "gross_max": 50_000_000,
        "gross_warning_above": 10_000_000,
        "retirement_warning_ratio": 0.30,
    },

    # Last-resort search for gross remuneration
    "fallback_search": {
        "currency_prefixed": {"min": 50_000, "max": 5_000_000, "weight": 0.8},
        "thousand_separated": {"min": 100_000, "max": 3_000_000, "weight": 0.6},
        "keyword_adjacent": {"min": 50_000, "max": 5_000_000, "weight": 0.9},
        "keyword_window": 100,
        "salary_keywords": [
            "salary",
            "remuneration",
            "earnings",
            "income",
            "gross",
            "total",
            "annual",
        ],
        "plausible_midpoint": 500_000,
        "context_chars": 50,
    },

    # Tax year detection
    "tax_year": {
        "min_year": 2020,
        "max_years_ahead": 1,  # Relative to the current calendar year
    },

    # Confidence scoring
    "confidence": {
        "low_confidence_warning": 70,  # Percent
        "fallback_contribution_factor": 0.5,
    },

    # Progress checkpoints (percent) per pipeline stage
    "progress": {
        "loading": 5,
        "rasterizing": 15,
        "direct_text_fallback": 20,
        "recognizing_start": 25,
        "recognizing_span": 50,
        "classifying": 80,
        "extracting": 85,
        "correcting": 90,
        "validating": 95,
        "done": 100,
    },
}
