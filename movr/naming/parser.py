import os
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .. import config


@dataclass(frozen=True)
class ParsedMetadata:
    """
    Metadata inferred from a vendor filename.
    Every field is optional: a missing value is a normal outcome, not an error.
    """
    company: Optional[str] = None       # 'QVC' / 'HSN'
    description: Optional[str] = None   # item number
    request_id: Optional[str] = None
    sequence: Optional[str] = None


class FilenameParser:
    """
    Heuristic filename parser.

    Three independent stages run over the cleaned filename:
      A. Request ID (MO#### / PH####), which also pins the company.
      B. Item number, as an ordered chain of rules. First hit wins.
      C. Sequence number, taken from the end of the extension-less basename.

    Instances hold only compiled patterns, so one parser can be shared freely
    between threads.
    """

    def __init__(self):
        self.request_patterns = [
            (re.compile(p), company) for p, company in config.REQUEST_ID_PATTERNS
        ]

        letters = config.ITEM_PREFIX_LETTERS
        self.letter_item = re.compile(rf'(?<![A-Za-z0-9])([{letters}]\d{{6}})(?![A-Za-z0-9])')
        self.h_item_at_start = re.compile(r'^H\d{6}')
        self.h_item_anywhere = re.compile(r'(?<![A-Za-z0-9])(H\d{6})(?![A-Za-z0-9])')
        self.h_item_separated = re.compile(r'(?<![A-Za-z0-9])(H)[-_ ]?(\d{6})(?![A-Za-z0-9])')

        self.tsv_after = re.compile(r'TSV[^0-9]*(\d{6})(?!\d)', re.IGNORECASE)
        self.tsv_before = re.compile(r'(?<!\d)(\d{6})[^0-9]*TSV', re.IGNORECASE)

        self.numeric_at_start = re.compile(r'^(\d{6,})[_ ]')
        self.numeric_embedded = re.compile(r'[_ ](\d{6,})[_ ]')

        months = '|'.join(config.MONTH_ABBREVIATIONS)
        self.sequence_patterns = [
            re.compile(r'[_ -]?(\d{3,4})$'),
            re.compile(r'[A-Za-z]+(\d{4})$'),
            re.compile(r'[A-Za-z]+(\d{4,5})$'),
            re.compile(rf'(?:{months})(\d{{3,4}})$', re.IGNORECASE),
        ]

    def parse(self, filename: str) -> ParsedMetadata:
        clean = filename
        for quote in config.QUOTE_CHARS:
            clean = clean.replace(quote, "")
        basename = os.path.splitext(clean)[0]

        company, request_id = self._find_request_id(clean)
        description, inferred_company = self._find_item_number(clean)
        if company is None:
            company = inferred_company

        return ParsedMetadata(
            company=company,
            description=description,
            request_id=request_id,
            sequence=self._find_sequence(basename),
        )

    # --- Stage A ---

    def _find_request_id(self, name: str) -> Tuple[Optional[str], Optional[str]]:
        for pattern, company in self.request_patterns:
            m = pattern.search(name)
            if m:
                # Only the prefix + digits; "-2" style suffixes are dropped
                return company, m.group(0)
        return None, None

    # --- Stage B ---

    def _find_item_number(self, name: str) -> Tuple[Optional[str], Optional[str]]:
        """Returns (item_number, inferred_company)."""
        item = self._letter_prefixed_item(name)
        if item:
            return item, 'QVC'

        return self._tsv_item(name) or self._numeric_item(name), None

    def _letter_prefixed_item(self, name: str) -> Optional[str]:
        # 1. Letter + 6 digits. A non-H prefix outranks H numbers, which the
        #    dedicated H rules below pick up.
        for m in self.letter_item.finditer(name):
            if not m.group(1).startswith('H'):
                return m.group(1)

        # 2. H number leading the filename
        m = self.h_item_at_start.search(name)
        if m:
            return m.group(0)

        # 3. H number anywhere
        m = self.h_item_anywhere.search(name)
        if m:
            return m.group(1)

        # 4. H-478461 / H_478461 / H 478461
        m = self.h_item_separated.search(name)
        if m:
            return m.group(1) + m.group(2)

        return None

    def _tsv_item(self, name: str) -> Optional[str]:
        if 'tsv' not in name.lower():
            return None
        m = self.tsv_after.search(name) or self.tsv_before.search(name)
        return m.group(1) if m else None

    def _numeric_item(self, name: str) -> Optional[str]:
        m = self.numeric_at_start.search(name) or self.numeric_embedded.search(name)
        return m.group(1) if m else None

    # --- Stage C ---

    def _find_sequence(self, basename: str) -> Optional[str]:
        # Order matters: rules 2 and 3 overlap and the first one listed wins.
        for pattern in self.sequence_patterns:
            m = pattern.search(basename)
            if m:
                return m.group(1)
        return None


_default_parser = FilenameParser()


def parse_filename(filename: str) -> ParsedMetadata:
    """Parses a bare filename (not a path) with the shared parser."""
    return _default_parser.parse(filename)
