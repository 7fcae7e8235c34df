"""
Field categories and the regex rules used to extract them.

A requested label (e.g. "Número de orden") is resolved to a FieldCategory by
keyword. Each category owns an ordered list of ExtractionRule entries that the
manual strategy applies line by line. Supporting a new document family means
editing these tables, not the strategy code.
"""

import re
import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Pattern, Dict, Tuple


class FieldCategory(Enum):
    """Kinds of fields the manual strategy knows how to find."""
    ORDER_NUMBER = 'order_number'
    LOAD_ID = 'load_id'
    ARTICLE_NAME = 'article_name'
    ARTICLE_CODE = 'article_code'
    QUANTITY = 'quantity'
    EMAIL = 'email'
    PHONE = 'phone'
    DATE = 'date'
    PRICE = 'price'
    GENERIC = 'generic'


# Checked in order; the first category whose keyword appears as a whole word
# in the normalized label wins. Specific value types come before record fields
# so that "Fecha de orden" is a date, not an order number.
CATEGORY_KEYWORDS: List[Tuple[FieldCategory, Tuple[str, ...]]] = [
    (FieldCategory.ARTICLE_CODE, ('codigo de articulo', 'article code', 'codigo')),
    (FieldCategory.EMAIL, ('email', 'e-mail', 'correo')),
    (FieldCategory.PHONE, ('telefono', 'phone')),
    (FieldCategory.DATE, ('fecha', 'date')),
    (FieldCategory.PRICE, ('precio', 'price', 'costo', 'cost')),
    (FieldCategory.ORDER_NUMBER, ('orden', 'order')),
    (FieldCategory.LOAD_ID, ('carga', 'load')),
    (FieldCategory.ARTICLE_NAME, ('articulo', 'article', 'producto', 'product')),
    (FieldCategory.QUANTITY, ('cantidad', 'quantity', 'qty')),
]

# Categories describing one record of a delivery line; they are searched only
# in the lines kept by the relevance filter. Everything else scans all lines.
RECORD_CATEGORIES = frozenset({
    FieldCategory.ORDER_NUMBER,
    FieldCategory.LOAD_ID,
    FieldCategory.ARTICLE_NAME,
    FieldCategory.QUANTITY,
})

# Order identifier with its digits captured, shared with quantity disambiguation
ORDER_ID_PATTERN = re.compile(r'\b(?:CPOV|CAOV)-(\d+)')

LEADING_RECORD_CODES = re.compile(r'^(?:[A-Z]{2,4}-\d+\s+)+')

SPANISH_MONTHS = ('enero', 'febrero', 'marzo', 'abril', 'mayo', 'junio', 'julio',
                  'agosto', 'septiembre', 'octubre', 'noviembre', 'diciembre')

# 1,250.00 / $1250 / 99.90
AMOUNT = r'\$?\d+(?:,\d{3})*(?:\.\d{2})?'


@dataclass(frozen=True)
class ExtractionRule:
    """
    One way of finding a category's value on a line.

    Attributes:
        pattern: Compiled regular expression
        group: Capture group holding the value (0 = whole match)
        strip_pattern: Optional pattern removed from the start of the value
    """
    pattern: Pattern
    group: int = 0
    strip_pattern: Optional[Pattern] = None

    def first_match(self, text: str) -> Optional[str]:
        """Return the rule's value for the first match in text, or None."""
        match = self.pattern.search(text)
        if not match:
            return None
        value = match.group(self.group)
        if value is None:
            return None
        if self.strip_pattern is not None:
            value = self.strip_pattern.sub('', value)
        value = value.strip()
        return value or None


CATEGORY_RULES: Dict[FieldCategory, List[ExtractionRule]] = {
    FieldCategory.ORDER_NUMBER: [
        ExtractionRule(re.compile(r'\b(?:CPOV|CAOV)-\d+')),
        ExtractionRule(re.compile(r'(?:N[úu]mero de orden|Order(?: Number)?)\s*:\s*([A-Z0-9\-]+)',
                                  re.IGNORECASE), group=1),
    ],
    FieldCategory.LOAD_ID: [
        ExtractionRule(re.compile(r'\bCG-\d+')),
        ExtractionRule(re.compile(r'(?:ID de carga|Load ID)\s*:\s*([A-Z0-9\-]+)',
                                  re.IGNORECASE), group=1),
    ],
    FieldCategory.ARTICLE_NAME: [
        # Uppercase run containing a brand/series marker
        ExtractionRule(re.compile(r'[A-Z][A-Z0-9 /"\'.\-]*?(?:SONACA|CORVI)[A-Z0-9/"\'.\-]*'),
                       strip_pattern=LEADING_RECORD_CODES),
        ExtractionRule(re.compile(r'(?:Nombre de art[íi]culo|Article Name)\s*:\s*([^\n]+)',
                                  re.IGNORECASE), group=1),
    ],
    FieldCategory.ARTICLE_CODE: [
        ExtractionRule(re.compile(r'\b(?:\d{6}-\d{3}|\d{3}-\d{4}|P\d{4})\b')),
    ],
    # Labelled fallback; unit-suffixed quantities go through QuantityDisambiguator
    FieldCategory.QUANTITY: [
        ExtractionRule(re.compile(r'(?:Cantidad|Quantity)\s*:\s*(\d{1,5})\b', re.IGNORECASE), group=1),
    ],
    FieldCategory.EMAIL: [
        ExtractionRule(re.compile(r'[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}')),
    ],
    FieldCategory.PHONE: [
        ExtractionRule(re.compile(r'(?:\+?\d{1,3}[\-.\s]?)?\(?\d{3}\)?[\-.\s]?\d{3}[\-.\s]?\d{4}\b')),
    ],
    FieldCategory.DATE: [
        ExtractionRule(re.compile(r'\b(?:\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}|\d{4}-\d{1,2}-\d{1,2})\b')),
        ExtractionRule(re.compile(rf'\b(?:{"|".join(SPANISH_MONTHS)})\s+\d{{1,2}},?\s+\d{{4}}\b',
                                  re.IGNORECASE)),
    ],
    # Bare numbers are not prices; an amount needs a label, a $ sign or a currency
    FieldCategory.PRICE: [
        ExtractionRule(re.compile(rf'(?:total|precio|costo|price|cost)\s*:?\s*({AMOUNT})',
                                  re.IGNORECASE), group=1),
        ExtractionRule(re.compile(rf'\${AMOUNT}|{AMOUNT}\s*(?:USD|EUR|GBP|d[óo]lares|euros)\b',
                                  re.IGNORECASE)),
    ],
    FieldCategory.GENERIC: [],
}


def normalize_label(label: str) -> str:
    """Lowercase a label and strip accents ("Número" -> "numero")."""
    decomposed = unicodedata.normalize('NFKD', label or '')
    stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    return ' '.join(stripped.lower().split())


def resolve_category(label: str) -> FieldCategory:
    """
    Map a requested label to its field category.

    Matching is case- and accent-insensitive and works on whole words, so
    "Número de orden", "numero de orden" and "Order" all resolve to
    ORDER_NUMBER. Unknown labels resolve to GENERIC.
    """
    normalized = normalize_label(label)
    for category, keywords in CATEGORY_KEYWORDS:
        for keyword in keywords:
            if re.search(rf'\b{re.escape(keyword)}\b', normalized):
                return category
    return FieldCategory.GENERIC


def rules_for(category: FieldCategory) -> List[ExtractionRule]:
    return CATEGORY_RULES.get(category, [])
