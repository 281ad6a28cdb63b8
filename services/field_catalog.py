"""
Field Pattern Catalog
Static description of every IRP5 field: its SARS source codes and the ordered regex patterns used to find its amount
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from config.extraction_config import EXTRACTION_CONFIG


class ExtractionField(str, Enum):
    """IRP5 fields extracted by the pipeline (value = ExtractedDocument attribute)"""
    GROSS_REMUNERATION = "gross_remuneration"
    PAYE_WITHHELD = "paye_withheld"
    UIF_CONTRIBUTION = "uif_contribution"
    RETIREMENT_FUND = "retirement_fund"
    MEDICAL_SCHEME = "medical_scheme"
    TRAVEL_ALLOWANCE = "travel_allowance"
    MEDICAL_CREDITS = "medical_credits"
    TOTAL_TAX = "total_tax"


class PatternKind(str, Enum):
    """How a pattern anchors the amount, from most to least specific"""
    POSITIONAL = "positional"    # amount immediately followed by the code
    CODE_FIRST = "code_first"    # code followed by the amount
    SPLIT_CODE = "split_code"    # OCR split the code into pieces ("36 0 1")
    KEYWORD = "keyword"          # printed label followed by the amount


# An amount must not continue a longer number on its left
_LEAD = r'(?<![\d.,])'

# "1,460.00", "122 664.00", "14800.92"
AMOUNT_WITH_CENTS = _LEAD + r'(\d{1,3}(?:[, ]\d{3})+\.\d{2}|\d+\.\d{2})'

# Same as above, cents optional ("1,460", "482000")
AMOUNT_ANY = _LEAD + r'(\d{1,3}(?:[, ]\d{3})+(?:\.\d{2})?|\d+(?:\.\d{2})?)'

_FLAGS = re.IGNORECASE

CONTRIBUTION_CEILING = EXTRACTION_CONFIG['plausibility']['contribution_ceiling']


@dataclass(frozen=True)
class FieldPattern:
    """One compiled pattern; group 1 captures the amount text"""
    regex: re.Pattern
    kind: PatternKind
    weight: float
    code: Optional[str] = None


@dataclass(frozen=True)
class FieldSpec:
    """Catalog entry for one field"""
    field: ExtractionField
    codes: Tuple[str, ...]
    patterns: Tuple[FieldPattern, ...]
    ceiling: Optional[float] = CONTRIBUTION_CEILING
    priority: int = 0
    prefer_smaller_duplicate: bool = False

    @property
    def primary_code(self) -> str:
        return self.codes[0]

    @property
    def primary_pattern(self) -> FieldPattern:
        """Positional pattern for the primary code (amount with cents, then code)"""
        for pattern in self.patterns:
            if pattern.kind == PatternKind.POSITIONAL and pattern.code == self.primary_code:
                return pattern
        return self.patterns[0]


def _code_patterns(code: str) -> Tuple[FieldPattern, ...]:
    """Build the code-anchored patterns for one SARS code, most specific first"""
    split_code = rf'{code[:2]}\s*{code[2]}\s*{code[3]}'
    return (
        FieldPattern(
            re.compile(rf'{AMOUNT_WITH_CENTS}\s+{code}\b', _FLAGS),
            PatternKind.POSITIONAL, 1.0, code,
        ),
        FieldPattern(
            re.compile(rf'{AMOUNT_ANY}\s+{code}\b', _FLAGS),
            PatternKind.POSITIONAL, 0.95, code,
        ),
        FieldPattern(
            re.compile(rf'(?:code\s*)?\b{code}\b[:\s]*R?\s*{AMOUNT_WITH_CENTS}', _FLAGS),
            PatternKind.CODE_FIRST, 0.85, code,
        ),
        FieldPattern(
            re.compile(rf'\b{split_code}\b[:\s]*R?\s*{AMOUNT_WITH_CENTS}', _FLAGS),
            PatternKind.SPLIT_CODE, 0.7, code,
        ),
    )


def _keyword_patterns(*labels: str) -> Tuple[FieldPattern, ...]:
    return tuple(
        FieldPattern(
            re.compile(rf'\b{label}\b[:\s]*R?\s*{AMOUNT_ANY}', _FLAGS),
            PatternKind.KEYWORD, 0.6,
        )
        for label in labels
    )


def _field_spec(field: ExtractionField, codes: Tuple[str, ...], keywords: Tuple[str, ...],
                **options) -> FieldSpec:
    patterns = ()
    for code in codes:
        patterns += _code_patterns(code)
        if code == codes[0]:
            # Labels describe the primary code; secondary codes are a last resort
            patterns += _keyword_patterns(*keywords)
    return FieldSpec(field=field, codes=codes, patterns=patterns, **options)


FIELD_CATALOG: Tuple[FieldSpec, ...] = (
    _field_spec(
        ExtractionField.GROSS_REMUNERATION, ("3601",),
        (r'gross\s*remuneration', r'total\s*remuneration', r'total\s*salary', r'basic\s*salary'),
        ceiling=None, priority=100,
    ),
    _field_spec(
        ExtractionField.PAYE_WITHHELD, ("4102", "4149"),
        (r'paye', r'tax\s*withheld', r'employees\s*tax'),
        priority=90,
    ),
    _field_spec(
        ExtractionField.UIF_CONTRIBUTION, ("3605",),
        (r'uif', r'unemployment\s*insurance'),
        priority=70, prefer_smaller_duplicate=True,
    ),
    _field_spec(
        ExtractionField.RETIREMENT_FUND, ("4005", "4006"),
        (r'retirement\s*fund', r'pension\s*fund', r'provident\s*fund', r'retirement\s*annuity'),
        priority=60,
    ),
    _field_spec(
        ExtractionField.MEDICAL_SCHEME, ("3810", "4474", "4472"),
        (r'medical\s*aid', r'medical\s*scheme', r'health\s*insurance'),
        priority=50,
    ),
    _field_spec(
        ExtractionField.TRAVEL_ALLOWANCE, ("3703",),
        (r'travel\s*allowance', r'motor\s*vehicle\s*allowance', r'car\s*allowance',
         r'transport\s*allowance', r'vehicle\s*allowance'),
        priority=40,
    ),
    _field_spec(
        ExtractionField.MEDICAL_CREDITS, ("4150",),
        (r'medical\s*(?:aid\s*|scheme\s*)?tax\s*credits?', r'medical\s*credits?'),
        priority=30,
    ),
    _field_spec(
        ExtractionField.TOTAL_TAX, ("4149",),
        (r'total\s*tax',),
        priority=80,
    ),
)

# Pairs of distinct fields that must not share an amount: (lower priority, higher priority)
COLLISION_RULES: Tuple[Tuple[ExtractionField, ExtractionField], ...] = (
    (ExtractionField.MEDICAL_CREDITS, ExtractionField.MEDICAL_SCHEME),
)

# Tax year labels; group 1 captures a four digit year
TAX_YEAR_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r'tax\s*year[:\s]*(\d{4})\b', _FLAGS),
    re.compile(r'\b(\d{4})\s*tax\s*year', _FLAGS),
    re.compile(r'year\s*of\s*assessment[:\s]*(\d{4})\b', _FLAGS),
    re.compile(r'assessment\s*year[:\s]*(\d{4})\b', _FLAGS),
    re.compile(r'period[:\s]*(\d{4})\b', _FLAGS),
)


def get_field_spec(field: ExtractionField, catalog: Tuple[FieldSpec, ...] = FIELD_CATALOG) -> FieldSpec:
    """Look up the catalog entry for a field"""
    for spec in catalog:
        if spec.field == field:
            return spec
    raise KeyError(f"Field not in catalog: {field.value}")


def line_anchored_pattern(spec: FieldSpec) -> re.Pattern:
    """Primary-code pattern that only matches an amount standing at the start of a line"""
    return re.compile(
        rf'^[ \t]*{AMOUNT_WITH_CENTS}\s+{spec.primary_code}\b',
        re.IGNORECASE | re.MULTILINE,
    )
