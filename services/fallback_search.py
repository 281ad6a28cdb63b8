"""
Gross Remuneration Fallback Search
Last-resort scan for a salary-sized amount when no code 3601 pattern matched
"""
import re
import logging
from dataclasses import dataclass
from typing import Dict, List

from config.extraction_config import EXTRACTION_CONFIG
from services.amount_normalizer import normalize_amount

logger = logging.getLogger(__name__)

# "R482,000", "R 482000.00"
_CURRENCY_PREFIXED = re.compile(
    r'(?<![A-Za-z])R\s*(\d{1,3}(?:,\d{3})+(?:\.\d{2})?|\d+(?:\.\d{2})?)(?![\d,])'
)
# "482,000.00" standing on its own
_THOUSAND_SEPARATED = re.compile(
    r'(?:^|(?<=\s))(\d{1,3}(?:,\d{3})+(?:\.\d{2})?)(?=\s|$)',
    re.MULTILINE,
)
# Separated thousands or cents; bare digit runs (employee numbers, years) never qualify
_FORMATTED_AMOUNT = re.compile(r'(?<![\d.,])(\d{1,3}(?:,\d{3})+(?:\.\d{2})?|\d+\.\d{2})(?![\d,])')


@dataclass
class GrossCandidate:
    """A salary-sized amount found outside any code pattern"""
    amount: float
    weight: float
    strategy: str
    context: str
    position: int


class GrossFallbackSearch:
    """
    Finds plausible gross salary amounts with three strategies:
    currency-prefixed amounts, thousand-separated amounts and amounts following salary keywords
    """

    def __init__(self, config: Dict = None):
        self.config = config or EXTRACTION_CONFIG
        self.settings = self.config['fallback_search']
        self.midpoint = self.settings['plausible_midpoint']
        self.context_chars = self.settings['context_chars']
        self.window = self.settings['keyword_window']
        self.keyword_patterns = [
            re.compile(re.escape(keyword), re.IGNORECASE)
            for keyword in self.settings['salary_keywords']
        ]

    def search(self, text: str) -> List[GrossCandidate]:
        """
        Collect and rank candidates

        Returns:
            Candidates ordered best first (higher weight, then closer to the plausible midpoint)
        """
        candidates = []
        candidates.extend(self._scan(text, _CURRENCY_PREFIXED, 'currency_prefixed'))
        candidates.extend(self._scan(text, _THOUSAND_SEPARATED, 'thousand_separated'))
        candidates.extend(self._keyword_adjacent(text))

        candidates.sort(key=lambda c: (-c.weight, abs(c.amount - self.midpoint)))

        logger.info(f"Gross fallback search found {len(candidates)} candidates")
        for candidate in candidates[:5]:
            logger.debug(
                f"  R{candidate.amount:,.2f} via {candidate.strategy} "
                f"(weight {candidate.weight}): {candidate.context!r}"
            )
        return candidates

    def _scan(self, text: str, pattern, strategy: str) -> List[GrossCandidate]:
        limits = self.settings[strategy]
        found = []
        for match in pattern.finditer(text):
            amount = normalize_amount(match.group(1))
            if limits['min'] <= amount <= limits['max']:
                found.append(self._candidate(text, amount, limits['weight'], strategy, match.start(1)))
        return found

    def _keyword_adjacent(self, text: str) -> List[GrossCandidate]:
        limits = self.settings['keyword_adjacent']
        found = []
        seen = set()
        for keyword in self.keyword_patterns:
            for hit in keyword.finditer(text):
                start = hit.end()
                window = text[start:start + self.window]
                # Only the first amount after the keyword belongs to it
                match = _FORMATTED_AMOUNT.search(window)
                if not match:
                    continue
                position = start + match.start(1)
                if position in seen:
                    continue
                amount = normalize_amount(match.group(1))
                if limits['min'] <= amount <= limits['max']:
                    seen.add(position)
                    found.append(self._candidate(
                        text, amount, limits['weight'], 'keyword_adjacent', position
                    ))
        return found

    def _candidate(self, text: str, amount: float, weight: float,
                   strategy: str, position: int) -> GrossCandidate:
        context = text[max(0, position - self.context_chars):position + self.context_chars]
        return GrossCandidate(
            amount=amount,
            weight=weight,
            strategy=strategy,
            context=context.strip(),
            position=position,
        )
