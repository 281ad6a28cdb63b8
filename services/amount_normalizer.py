"""
Amount Normalizer
Turns OCR'd amount text ("R 122 664.00", "14,800.92", "1460,5") into a non-negative float
"""
import re

# Anything that is not a digit, separator, minus sign or whitespace is noise
_NOISE_RE = re.compile(r'[^\d.,\-\s]')
_WHITESPACE_RE = re.compile(r'\s+')


def normalize_amount(text: str) -> float:
    """
    Parse free-form amount text into a float

    Currency glyphs and OCR artifacts are dropped, whitespace is removed and
    the remaining separators are disambiguated:
    - a single '.' (no ','): decimal point if fewer than 3 characters follow it,
      otherwise a thousands separator
    - a single ',' (no '.'): same rule, a decimal comma becomes '.'
    - anything else: every ',' is a thousands separator and only the last '.'
      survives as the decimal point

    Never raises. Returns 0.0 for empty or unparseable input and never returns
    a negative number.
    """
    if not text:
        return 0.0

    cleaned = _NOISE_RE.sub('', text)
    cleaned = _WHITESPACE_RE.sub('', cleaned)
    if not cleaned:
        return 0.0

    period_count = cleaned.count('.')
    comma_count = cleaned.count(',')

    if period_count == 1 and comma_count == 0:
        trailing = len(cleaned) - cleaned.index('.') - 1
        if trailing >= 3:
            cleaned = cleaned.replace('.', '')
    elif comma_count == 1 and period_count == 0:
        trailing = len(cleaned) - cleaned.index(',') - 1
        if trailing < 3:
            cleaned = cleaned.replace(',', '.')
        else:
            cleaned = cleaned.replace(',', '')
    else:
        cleaned = cleaned.replace(',', '')
        if cleaned.count('.') > 1:
            head, _, last = cleaned.rpartition('.')
            cleaned = head.replace('.', '') + '.' + last

    try:
        value = float(cleaned)
    except ValueError:
        return 0.0

    return abs(value)
