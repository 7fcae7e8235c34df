"""
Data models for extracted document fields.

This module defines the data structures passed between the extraction stages:
logical lines, positioned text fragments, extracted fields, and the request and
result objects of one extraction run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any

from extraction.exceptions import NoFieldsExtractedError


METHOD_AI = 'ai'
METHOD_MANUAL = 'manual'


@dataclass
class LogicalLine:
    """
    One reconstructed record line of a document.

    Attributes:
        index: 1-based position among the reconstructed lines
        text: Trimmed line text
    """
    index: int
    text: str

    def __post_init__(self):
        self.text = (self.text or '').strip()

    def contains(self, keyword: str) -> bool:
        """Check whether the line contains a keyword (case-sensitive)."""
        return keyword in self.text


@dataclass
class TextFragment:
    """
    A positioned run of text on a PDF page.

    Attributes:
        text: Fragment text
        x0: Left edge in points
        top: Distance from the top of the page in points
        page_number: 1-based page the fragment belongs to
    """
    text: str
    x0: float = 0.0
    top: float = 0.0
    page_number: int = 1


@dataclass
class ExtractedField:
    """
    A single field value pulled out of a document.

    Attributes:
        name: Requested label the value answers (e.g. "Cantidad")
        value: Extracted value, trimmed
        source_line: Index of the logical line it came from (0 when unknown)
        method: Strategy that produced the value ('ai' or 'manual')
    """
    name: str
    value: str
    source_line: int = 0
    method: str = METHOD_MANUAL

    def __post_init__(self):
        """Normalize field data after initialization."""
        self.name = (self.name or '').strip()
        self.value = '' if self.value is None else str(self.value).strip()
        try:
            self.source_line = int(self.source_line or 0)
        except (ValueError, TypeError):
            self.source_line = 0

    def is_valid(self) -> bool:
        """A field is valid when both its name and value are non-empty."""
        return bool(self.name) and bool(self.value)

    @property
    def key(self) -> tuple:
        return (self.name, self.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'value': self.value,
            'line': self.source_line,
            'method': self.method,
        }


@dataclass
class ExtractionRequest:
    """
    Input of one extraction run.

    Labels are stripped; blank and repeated labels are dropped, keeping the
    first occurrence.
    """
    text: str
    requested_fields: List[str] = field(default_factory=list)
    source_path: Optional[str] = None

    def __post_init__(self):
        self.text = self.text or ''
        labels = []
        for label in self.requested_fields or []:
            label = (label or '').strip()
            if label and label not in labels:
                labels.append(label)
        self.requested_fields = labels

    @property
    def is_empty(self) -> bool:
        return not self.text.strip() or not self.requested_fields


class ExtractionStatus(Enum):
    """Outcome of an extraction run."""
    SUCCESS = 'success'
    EMPTY_INPUT = 'empty_input'
    NOTHING_EXTRACTED = 'nothing_extracted'


@dataclass
class ExtractionResult:
    """
    Ordered, duplicate-free fields produced by one extraction run.

    Attributes:
        fields: Extracted fields in discovery order
        requested_fields: Labels that were asked for
        status: Overall outcome
        method: Strategy that produced the fields ('ai', 'manual' or None)
        line_count: Number of reconstructed logical lines
        relevant_line_count: Number of lines kept by the relevance filter
    """
    fields: List[ExtractedField] = field(default_factory=list)
    requested_fields: List[str] = field(default_factory=list)
    status: ExtractionStatus = ExtractionStatus.SUCCESS
    method: Optional[str] = None
    line_count: int = 0
    relevant_line_count: int = 0
    source_path: Optional[str] = None

    @property
    def nothing_extracted(self) -> bool:
        return self.status == ExtractionStatus.NOTHING_EXTRACTED

    def values_for(self, name: str) -> List[str]:
        """Get every extracted value for one label, in discovery order."""
        return [f.value for f in self.fields if f.name == name]

    def group_by_name(self) -> Dict[str, List[str]]:
        """Group values by label, keeping requested label order first."""
        grouped: Dict[str, List[str]] = {name: [] for name in self.requested_fields}
        for extracted in self.fields:
            grouped.setdefault(extracted.name, []).append(extracted.value)
        return grouped

    def raise_if_empty(self) -> None:
        """Raise NoFieldsExtractedError when the run found nothing."""
        if self.status != ExtractionStatus.SUCCESS or not self.fields:
            raise NoFieldsExtractedError(
                "No fields could be extracted from the document",
                source_path=self.source_path,
                requested_fields=self.requested_fields,
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'method': self.method,
            'requested_fields': list(self.requested_fields),
            'line_count': self.line_count,
            'relevant_line_count': self.relevant_line_count,
            'fields': [f.to_dict() for f in self.fields],
        }


@dataclass
class DocumentText:
    """
    Flattened text of an uploaded document.

    Attributes:
        text: Document text, pages separated by blank lines
        file_type: Reader that produced it ('pdf', 'excel', 'word', 'text')
        page_count: Pages (or sheets) read
        failed_pages: 1-based pages whose extraction failed and contributed no text
        source_path: Path of the document
    """
    text: str
    file_type: str
    page_count: int = 1
    failed_pages: List[int] = field(default_factory=list)
    source_path: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()
