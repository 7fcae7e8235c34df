"""
Document text extraction.

DocumentReader flattens an uploaded document to plain text before field
extraction. PDFs are read with pdfplumber, one page per worker thread, and
their words are regrouped into lines by vertical position. Excel workbooks are
read with pandas, Word documents with python-docx.
"""

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence, Union

import docx
import pandas as pd
import pdfplumber

from extraction.categories import normalize_label
from extraction.config import ExtractionConfig
from extraction.exceptions import TextExtractionError, UnsupportedFormatError
from extraction.line_reconstructor import LineReconstructor
from extraction.models import DocumentText, TextFragment


FILE_TYPES = {
    '.pdf': 'pdf',
    '.xlsx': 'excel',
    '.xls': 'excel',
    '.docx': 'word',
    '.txt': 'text',
    '.csv': 'text',
}

PAGE_SEPARATOR = '\n\n'


class DocumentReader:
    """
    Reads PDF, Excel, Word and plain text documents into DocumentText.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config or ExtractionConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.reconstructor = LineReconstructor(self.config)

    def read(self, path: Union[str, Path],
             requested_fields: Optional[Sequence[str]] = None) -> DocumentText:
        """
        Extract the text of a document.

        Args:
            path: Path to the document
            requested_fields: Field labels; workbook columns whose header names
                one of them are read alone

        Returns:
            DocumentText with the flattened text

        Raises:
            UnsupportedFormatError: If the extension has no reader
            TextExtractionError: If the document cannot be read or holds no text
        """
        path = Path(path)
        file_type = FILE_TYPES.get(path.suffix.lower())
        if file_type is None:
            raise UnsupportedFormatError(
                f"Unsupported document type: {path.suffix or '(none)'}",
                source_path=str(path), found_format=path.suffix,
            )
        if not path.is_file():
            raise TextExtractionError(f"Document not found: {path}", source_path=str(path))

        if file_type == 'excel':
            document = self._read_excel(path, requested_fields)
        else:
            readers = {
                'pdf': self._read_pdf,
                'word': self._read_word,
                'text': self._read_text,
            }
            document = readers[file_type](path)

        if document.is_empty:
            raise TextExtractionError(
                "No text could be extracted from document",
                source_path=str(path), extraction_method=file_type,
            )

        self.logger.info(f"Extracted {len(document.text)} characters from {path.name} "
                         f"({document.page_count} {'pages' if file_type == 'pdf' else 'parts'})")
        return document

    def _read_pdf(self, path: Path) -> DocumentText:
        data = path.read_bytes()
        try:
            page_count = self._count_pages(data)
        except Exception as e:
            raise TextExtractionError(
                f"Error opening PDF: {e}", source_path=str(path),
                extraction_method='pdfplumber', original_error=e,
            ) from e

        if page_count > self.config.max_pdf_pages:
            self.logger.warning(f"PDF has {page_count} pages; reading the first "
                                f"{self.config.max_pdf_pages}")
            page_count = self.config.max_pdf_pages

        page_numbers = list(range(1, page_count + 1))
        with ThreadPoolExecutor(max_workers=max(1, self.config.page_workers)) as executor:
            futures = [executor.submit(self._extract_page_text, data, number)
                       for number in page_numbers]

        page_texts = []
        failed_pages = []
        for number, future in zip(page_numbers, futures):
            try:
                page_texts.append(future.result())
            except Exception as e:
                self.logger.error(f"Failed to extract text from page {number}: {e}")
                failed_pages.append(number)
                page_texts.append('')

        return DocumentText(
            text=PAGE_SEPARATOR.join(text for text in page_texts if text),
            file_type='pdf',
            page_count=page_count,
            failed_pages=failed_pages,
            source_path=str(path),
        )

    def _count_pages(self, data: bytes) -> int:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            return len(pdf.pages)

    def _extract_page_text(self, data: bytes, page_number: int) -> str:
        """Extract one page, grouping its words into lines by position."""
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            page = pdf.pages[page_number - 1]
            words = page.extract_words()

        fragments = [
            TextFragment(text=word['text'], x0=float(word['x0']),
                         top=float(word['top']), page_number=page_number)
            for word in words
        ]
        lines = self.reconstructor.group_fragments(fragments)
        self.logger.debug(f"Page {page_number}: {len(words)} words in {len(lines)} lines")
        return '\n'.join(lines)

    def _read_excel(self, path: Path,
                    requested_fields: Optional[Sequence[str]] = None) -> DocumentText:
        try:
            sheets = pd.read_excel(path, sheet_name=None, header=None, dtype=str)
        except Exception as e:
            raise TextExtractionError(
                f"Error reading workbook: {e}", source_path=str(path),
                extraction_method='pandas', original_error=e,
            ) from e

        sheet_texts = []
        for sheet_name, frame in sheets.items():
            frame = self._select_columns(frame, requested_fields)
            lines = self._rows_to_lines(frame.itertuples(index=False, name=None))
            self.logger.debug(f"Sheet '{sheet_name}': {len(lines)} rows")
            if lines:
                sheet_texts.append('\n'.join(lines))

        return DocumentText(
            text=PAGE_SEPARATOR.join(sheet_texts),
            file_type='excel',
            page_count=len(sheets),
            source_path=str(path),
        )

    def _select_columns(self, frame: pd.DataFrame,
                        requested_fields: Optional[Sequence[str]]) -> pd.DataFrame:
        """
        Keep the columns whose first-row header contains a requested label.

        The whole sheet is kept when no header matches.
        """
        if not requested_fields or frame.empty:
            return frame

        labels = [normalize_label(label) for label in requested_fields]
        positions = [
            position for position, header in enumerate(frame.iloc[0])
            if not pd.isna(header)
            and any(label and label in normalize_label(str(header)) for label in labels)
        ]
        if not positions:
            return frame

        self.logger.debug(f"Reading {len(positions)} of {frame.shape[1]} columns")
        return frame.iloc[:, positions]

    def _read_word(self, path: Path) -> DocumentText:
        try:
            document = docx.Document(str(path))
        except Exception as e:
            raise TextExtractionError(
                f"Error reading Word document: {e}", source_path=str(path),
                extraction_method='python-docx', original_error=e,
            ) from e

        lines = [p.text.strip() for p in document.paragraphs if p.text.strip()]
        for table in document.tables:
            lines.extend(self._rows_to_lines(
                [cell.text for cell in row.cells] for row in table.rows))

        return DocumentText(text='\n'.join(lines), file_type='word', source_path=str(path))

    def _read_text(self, path: Path) -> DocumentText:
        try:
            text = path.read_text(encoding='utf-8', errors='replace')
        except OSError as e:
            raise TextExtractionError(
                f"Error reading text file: {e}", source_path=str(path),
                extraction_method='text', original_error=e,
            ) from e
        return DocumentText(text=text, file_type='text', source_path=str(path))

    @staticmethod
    def _rows_to_lines(rows) -> List[str]:
        """Join the non-empty cells of each row with spaces."""
        lines = []
        for row in rows:
            cells = [str(cell).strip() for cell in row
                     if cell is not None and not pd.isna(cell) and str(cell).strip()]
            if cells:
                lines.append(' '.join(cells))
        return lines
