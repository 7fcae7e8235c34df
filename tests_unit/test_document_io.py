"""
Unit tests for document reading, report generation and configuration.
"""

import json
from unittest.mock import patch

import docx
import pandas as pd
import pytest

from extraction.config import ExtractionConfig, DEFAULT_FIELDS
from extraction.document_reader import DocumentReader
from extraction.exceptions import ConfigurationError, TextExtractionError, UnsupportedFormatError
from extraction.models import ExtractedField, ExtractionResult
from extraction.report_generator import ReportGenerator, DATA_SHEET, SUMMARY_SHEET


def _sample_result():
    return ExtractionResult(
        fields=[
            ExtractedField('ID de carga', 'CG-00014961', 2),
            ExtractedField('Número de orden', 'CPOV-000009927', 2),
            ExtractedField('Cantidad', '40', 2),
            ExtractedField('Número de orden', 'CPOV-000009968', 4),
            ExtractedField('Cantidad', '120', 4),
        ],
        requested_fields=['ID de carga', 'Número de orden', 'Nombre de artículo', 'Cantidad'],
        method='manual',
        line_count=6,
        relevant_line_count=3,
    )


class TestDocumentReader:
    """Test flattening of documents to text."""

    def setup_method(self):
        """Set up test fixtures."""
        self.reader = DocumentReader(ExtractionConfig())

    def test_read_text_file(self, tmp_path):
        """Test that plain text is read as UTF-8."""
        path = tmp_path / "guia.txt"
        path.write_text("Número de orden: CPOV-1\nCantidad: 3", encoding='utf-8')

        document = self.reader.read(path)

        assert document.file_type == 'text'
        assert document.text == "Número de orden: CPOV-1\nCantidad: 3"

    def test_unsupported_extension(self, tmp_path):
        """Test that unknown document types are refused."""
        path = tmp_path / "scan.png"
        path.write_bytes(b"\x89PNG")

        with pytest.raises(UnsupportedFormatError) as exc_info:
            self.reader.read(path)
        assert exc_info.value.details['found_format'] == '.png'

    def test_empty_document_raises(self, tmp_path):
        """Test that a document without text is an extraction error."""
        path = tmp_path / "vacio.txt"
        path.write_text("  \n ", encoding='utf-8')

        with pytest.raises(TextExtractionError):
            self.reader.read(path)

    def test_missing_document_raises(self, tmp_path):
        """Test that a missing file is reported."""
        with pytest.raises(TextExtractionError):
            self.reader.read(tmp_path / "missing.pdf")

    def test_read_excel_rows(self, tmp_path):
        """Test that every non-empty row becomes one line."""
        path = tmp_path / "carga.xlsx"
        frame = pd.DataFrame([
            ['CG-00014961', 'CPOV-000009927', 'TUBOS PVC SCH 40 CORVI-SONACA', '40 UND'],
            [None, None, None, None],
            ['CG-00014961', 'CPOV-000009968', 'TUBOS PVC SCH 40 CORVI-SONACA', '120 UND'],
        ])
        frame.to_excel(path, index=False, header=False)

        document = self.reader.read(path)

        assert document.file_type == 'excel'
        assert document.text.splitlines() == [
            'CG-00014961 CPOV-000009927 TUBOS PVC SCH 40 CORVI-SONACA 40 UND',
            'CG-00014961 CPOV-000009968 TUBOS PVC SCH 40 CORVI-SONACA 120 UND',
        ]

    def test_read_excel_requested_columns(self, tmp_path):
        """Test that only columns whose header names a requested field are read."""
        path = tmp_path / "pedidos.xlsx"
        pd.DataFrame([
            ['Número de orden', 'Cliente', 'Cantidad pedida'],
            ['CPOV-000009927', 'Ferreteria Central', '40'],
        ]).to_excel(path, index=False, header=False)

        document = self.reader.read(path, ['numero de orden', 'Cantidad'])

        assert document.text.splitlines() == [
            'Número de orden Cantidad pedida',
            'CPOV-000009927 40',
        ]

    def test_read_excel_without_matching_header_keeps_all_columns(self, tmp_path):
        """Test that the whole sheet is read when no header matches."""
        path = tmp_path / "pedidos.xlsx"
        pd.DataFrame([['CG-1', 'TUBOS PVC', '40 UND']]).to_excel(path, index=False, header=False)

        document = self.reader.read(path, DEFAULT_FIELDS)

        assert document.text == 'CG-1 TUBOS PVC 40 UND'

    def test_read_word_paragraphs_and_tables(self, tmp_path):
        """Test that paragraphs and table rows are both read."""
        path = tmp_path / "guia.docx"
        document = docx.Document()
        document.add_paragraph("Guia de despacho")
        table = document.add_table(rows=1, cols=2)
        table.rows[0].cells[0].text = "CPOV-000009927"
        table.rows[0].cells[1].text = "40 UND"
        document.save(str(path))

        result = self.reader.read(path)

        assert result.file_type == 'word'
        assert result.text.splitlines() == ["Guia de despacho", "CPOV-000009927 40 UND"]

    def test_failed_pdf_page_contributes_empty_text(self, tmp_path):
        """Test that one unreadable page does not fail the whole PDF."""
        path = tmp_path / "guia.pdf"
        path.write_bytes(b"%PDF-1.4 placeholder")

        def extract_page(data, page_number):
            if page_number == 2:
                raise ValueError("corrupt content stream")
            return f"pagina {page_number}"

        with patch.object(DocumentReader, '_count_pages', return_value=3), \
                patch.object(DocumentReader, '_extract_page_text', side_effect=extract_page):
            document = self.reader.read(path)

        assert document.text == "pagina 1\n\npagina 3"
        assert document.failed_pages == [2]
        assert document.page_count == 3

    def test_pdf_page_limit(self, tmp_path):
        """Test that at most max_pdf_pages pages are read."""
        path = tmp_path / "largo.pdf"
        path.write_bytes(b"%PDF-1.4 placeholder")
        reader = DocumentReader(ExtractionConfig(max_pdf_pages=2))

        with patch.object(DocumentReader, '_count_pages', return_value=10), \
                patch.object(DocumentReader, '_extract_page_text',
                             side_effect=lambda data, number: f"p{number}") as mock_page:
            document = reader.read(path)

        assert document.page_count == 2
        assert mock_page.call_count == 2
        assert document.text == "p1\n\np2"

    def test_unreadable_pdf_raises(self, tmp_path):
        """Test that a file pdfplumber cannot open is an extraction error."""
        path = tmp_path / "roto.pdf"
        path.write_bytes(b"not a pdf at all")

        with patch.object(DocumentReader, '_count_pages', side_effect=ValueError("no trailer")):
            with pytest.raises(TextExtractionError) as exc_info:
                self.reader.read(path)
        assert exc_info.value.details['extraction_method'] == 'pdfplumber'


class TestReportGenerator:
    """Test record correlation and report writing."""

    def setup_method(self):
        """Set up test fixtures."""
        self.generator = ReportGenerator()

    def test_records_grouped_by_line(self):
        """Test that fields from one line form one row."""
        records = self.generator.build_records(_sample_result())

        assert records == [
            {'ID de carga': 'CG-00014961', 'Número de orden': 'CPOV-000009927',
             'Nombre de artículo': '', 'Cantidad': '40'},
            {'ID de carga': 'CG-00014961', 'Número de orden': 'CPOV-000009968',
             'Nombre de artículo': '', 'Cantidad': '120'},
        ]

    def test_unattributed_fields_get_their_own_rows(self):
        """Test that fields without a source line are still reported."""
        result = ExtractionResult(
            fields=[ExtractedField('Cantidad', '5', 0), ExtractedField('Cantidad', '6', 0)],
            requested_fields=['Cantidad'],
        )

        assert self.generator.build_records(result) == [{'Cantidad': '5'}, {'Cantidad': '6'}]

    def test_write_excel(self, tmp_path):
        """Test that the workbook has the data and summary sheets."""
        path = self.generator.write(_sample_result(), tmp_path / "out.xlsx", 'xlsx')

        sheets = pd.read_excel(path, sheet_name=None, dtype=str)
        assert set(sheets) == {DATA_SHEET, SUMMARY_SHEET}
        assert list(sheets[DATA_SHEET].columns) == DEFAULT_FIELDS
        assert list(sheets[DATA_SHEET]['Cantidad']) == ['40', '120']

    def test_write_csv(self, tmp_path):
        """Test that the CSV starts with a BOM and has one row per record."""
        path = self.generator.write(_sample_result(), tmp_path / "out.csv", 'csv')

        raw = path.read_bytes()
        assert raw.startswith(b'\xef\xbb\xbf')
        lines = raw.decode('utf-8-sig').splitlines()
        assert lines[0] == 'ID de carga,Número de orden,Nombre de artículo,Cantidad'
        assert len(lines) == 3

    def test_write_json(self, tmp_path):
        """Test that the JSON report carries fields, records and metadata."""
        path = self.generator.write(_sample_result(), tmp_path / "out.json", 'json')

        data = json.loads(path.read_text(encoding='utf-8'))
        assert data['method'] == 'manual'
        assert data['fields'][0] == {'name': 'ID de carga', 'value': 'CG-00014961',
                                     'line': 2, 'method': 'manual'}
        assert len(data['records']) == 2

    def test_unknown_format(self, tmp_path):
        """Test that unsupported formats are refused."""
        with pytest.raises(ValueError):
            self.generator.write(_sample_result(), tmp_path / "out.txt", 'txt')


class TestExtractionConfig:
    """Test configuration loading and validation."""

    def test_defaults(self):
        """Test the default thresholds."""
        config = ExtractionConfig()

        assert config.model_name == 'gemini-2.0-flash'
        assert config.max_text_length == 100000
        assert config.order_collision_threshold == 500
        assert not config.has_api_key

    def test_from_dict_rejects_unknown_keys(self):
        """Test that typos in settings are reported."""
        with pytest.raises(ConfigurationError) as exc_info:
            ExtractionConfig.from_dict({'max_text_lenght': 10})
        assert exc_info.value.details['setting'] == 'max_text_lenght'

    def test_from_dict_rejects_wrong_types(self):
        """Test that values of the wrong type are reported."""
        with pytest.raises(ConfigurationError):
            ExtractionConfig.from_dict({'min_line_count': 'five'})
        with pytest.raises(ConfigurationError):
            ExtractionConfig.from_dict({'relevance_keywords': 'TUBOS PVC'})

    def test_load_file_then_environment(self, tmp_path):
        """Test that environment variables override the settings file."""
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({'max_text_length': 5000, 'temperature': 0, 'use_ai': 'no'}),
                        encoding='utf-8')

        config = ExtractionConfig.load(path, environ={
            'FIELD_EXTRACTOR_MAX_TEXT_LENGTH': '2000',
            'GEMINI_API_KEY': 'abc123',
        })

        assert config.max_text_length == 2000
        assert config.temperature == 0.0
        assert config.use_ai is False
        assert config.api_key == 'abc123'

    def test_invalid_environment_value(self):
        """Test that malformed environment values are reported."""
        with pytest.raises(ConfigurationError):
            ExtractionConfig.load(environ={'FIELD_EXTRACTOR_TEMPERATURE': 'warm'})

    def test_invalid_json_file(self, tmp_path):
        """Test that a broken settings file is reported."""
        path = tmp_path / "settings.json"
        path.write_text("{broken", encoding='utf-8')

        with pytest.raises(ConfigurationError):
            ExtractionConfig.load(path, environ={})

    def test_placeholder_key_is_not_a_key(self):
        """Test that the template placeholder key does not enable AI."""
        assert not ExtractionConfig(api_key='tu_api_key_de_gemini_aqui').has_api_key

    def test_to_dict_masks_api_key(self):
        """Test that the API key is masked for display."""
        assert ExtractionConfig(api_key='secret-key').to_dict()['api_key'] == 'secr...'

    def test_invalid_record_pattern_rejected(self):
        """Test that a record pattern that does not compile is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            ExtractionConfig.from_dict({'record_start_pattern': '(CG-'})
        assert exc_info.value.details['setting'] == 'record_start_pattern'

    @pytest.mark.parametrize("setting", [
        'unit_markers', 'article_markers', 'relevance_keywords', 'quantity_context_words',
    ])
    def test_empty_keyword_lists_rejected(self, setting):
        """Test that keyword lists need at least one non-blank entry."""
        with pytest.raises(ConfigurationError) as exc_info:
            ExtractionConfig.from_dict({setting: []})
        assert exc_info.value.details['setting'] == setting

        with pytest.raises(ConfigurationError):
            ExtractionConfig.from_dict({setting: ['UND', '  ']})

    def test_empty_anchor_phrase_rejected(self):
        """Test that the anchor phrase cannot be blank."""
        with pytest.raises(ConfigurationError):
            ExtractionConfig.from_dict({'anchor_phrase': ''})

    def test_non_positive_counts_rejected(self):
        """Test that page, worker and length limits must be positive."""
        with pytest.raises(ConfigurationError):
            ExtractionConfig.from_dict({'page_workers': 0})
        with pytest.raises(ConfigurationError):
            ExtractionConfig.load(environ={'FIELD_EXTRACTOR_MAX_PDF_PAGES': '0'})

    def test_custom_values_accepted(self):
        """Test that valid custom patterns and lists load."""
        config = ExtractionConfig.from_dict({
            'record_start_pattern': r'LOTE-\d+',
            'unit_markers': ['CAJAS'],
        })

        assert config.record_start_pattern == r'LOTE-\d+'
        assert config.unit_markers == ['CAJAS']
