"""
Unit tests for line reconstruction, relevance filtering and layout grouping.
"""

from extraction.config import ExtractionConfig
from extraction.line_reconstructor import LineReconstructor
from extraction.models import LogicalLine, TextFragment
from extraction.relevance import filter_relevant


DELIVERY_TEXT = (
    "GUIA DE DESPACHO\n"
    "CG-00014961 CPOV-000009927 TUBOS PVC SCH 40 6\" X 19' CORVI-SONACA 40 UND\n"
    "CG-00014961 CPOV-000009911 TUBOS PVC SDR 26 4\" X 19' CORVI-SONACA 9911 UND\n"
    "CG-00014961 CPOV-000009968 TUBOS PVC SCH 40 2\" X 19' CORVI-SONACA 120 UND\n"
    "Cliente: Ferreteria Central\n"
    "Total bultos 3\n"
)


class TestLineReconstructor:
    """Test recovery of logical lines from flattened text."""

    def setup_method(self):
        """Set up test fixtures."""
        self.reconstructor = LineReconstructor(ExtractionConfig())

    def test_real_line_breaks_are_kept(self):
        """Test that text with enough line breaks is split as-is."""
        lines = self.reconstructor.reconstruct_lines(DELIVERY_TEXT)

        assert [line.text for line in lines] == [
            line.strip() for line in DELIVERY_TEXT.splitlines() if line.strip()
        ]
        assert [line.index for line in lines] == [1, 2, 3, 4, 5, 6]

    def test_windows_line_breaks_and_blank_lines(self):
        """Test that CRLF breaks and blank lines do not produce empty lines."""
        text = "  uno  \r\n\r\ndos\rtres\n\ncuatro\ncinco\n"
        lines = self.reconstructor.reconstruct_lines(text)

        assert [line.text for line in lines] == ['uno', 'dos', 'tres', 'cuatro', 'cinco']

    def test_concatenated_records_split_at_markers(self):
        """Test that records glued on one line are split at load markers."""
        text = ("CG-1 CPOV-100 TUBOS PVC ... A 1 UND "
                "CG-2 CPOV-200 TUBOS PVC ... B 400 UND")
        lines = self.reconstructor.reconstruct_lines(text)

        assert len(lines) == 2
        assert lines[0].text == "CG-1 CPOV-100 TUBOS PVC ... A 1 UND"
        assert lines[1].text == "CG-2 CPOV-200 TUBOS PVC ... B 400 UND"
        assert [line.index for line in lines] == [1, 2]

    def test_text_before_first_marker_is_dropped(self):
        """Test that a header before the first record marker is not a record."""
        text = "Encabezado CG-10 CPOV-1 TUBOS PVC X 5 UND CG-11 CPOV-2 TUBOS PVC Y 6 UND"
        lines = self.reconstructor.reconstruct_lines(text)

        assert all(line.text.startswith('CG-') for line in lines)
        assert len(lines) == 2

    def test_short_segments_are_discarded(self):
        """Test that marker segments under the minimum length are dropped."""
        text = "CG-1 CG-2 CPOV-200 TUBOS PVC B 400 UND"
        lines = self.reconstructor.reconstruct_lines(text)

        assert [line.text for line in lines] == ["CG-2 CPOV-200 TUBOS PVC B 400 UND"]

    def test_anchor_phrase_fallback(self):
        """Test splitting at the product anchor when no marker is present."""
        text = "TUBOS PVC SCH 40 CORVI-SONACA 10 UND TUBOS PVC SDR 26 CORVI-SONACA 20 UND"
        lines = self.reconstructor.reconstruct_lines(text)

        assert [line.text for line in lines] == [
            "TUBOS PVC SCH 40 CORVI-SONACA 10 UND",
            "TUBOS PVC SDR 26 CORVI-SONACA 20 UND",
        ]

    def test_no_heuristic_returns_naive_split(self):
        """Test that unrecognizable text comes back as a single line."""
        lines = self.reconstructor.reconstruct_lines("just some words")

        assert lines == [LogicalLine(1, "just some words")]

    def test_empty_text(self):
        """Test that empty or blank text gives no lines."""
        assert self.reconstructor.reconstruct_lines("") == []
        assert self.reconstructor.reconstruct_lines("   \n  ") == []
        assert self.reconstructor.reconstruct_lines(None) == []

    def test_custom_marker_pattern(self):
        """Test that the record marker comes from configuration."""
        config = ExtractionConfig(record_start_pattern=r'LOTE-\d+')
        reconstructor = LineReconstructor(config)
        lines = reconstructor.reconstruct_lines("LOTE-1 producto alfa 3 UND LOTE-2 producto beta 4 UND")

        assert len(lines) == 2


class TestFragmentGrouping:
    """Test grouping of positioned PDF words into lines."""

    def setup_method(self):
        """Set up test fixtures."""
        self.reconstructor = LineReconstructor(ExtractionConfig(line_y_tolerance=5))

    def test_words_on_same_row_are_joined_left_to_right(self):
        """Test that words within the tolerance form one line ordered by x."""
        fragments = [
            TextFragment('UND', x0=300, top=100.0),
            TextFragment('CG-1', x0=10, top=101.5),
            TextFragment('40', x0=250, top=99.0),
        ]

        assert self.reconstructor.group_fragments(fragments) == ['CG-1 40 UND']

    def test_vertical_gap_starts_new_line(self):
        """Test that a vertical jump beyond the tolerance starts a new line."""
        fragments = [
            TextFragment('segunda', x0=10, top=120.0),
            TextFragment('primera', x0=10, top=100.0),
        ]

        assert self.reconstructor.group_fragments(fragments) == ['primera', 'segunda']

    def test_page_change_starts_new_line(self):
        """Test that fragments on different pages never share a line."""
        fragments = [
            TextFragment('a', x0=10, top=100.0, page_number=1),
            TextFragment('b', x0=20, top=100.0, page_number=2),
        ]

        assert self.reconstructor.group_fragments(fragments) == ['a', 'b']

    def test_blank_fragments_are_ignored(self):
        """Test that whitespace-only fragments are skipped."""
        fragments = [TextFragment('  ', x0=0, top=0), TextFragment('x', x0=5, top=0)]

        assert self.reconstructor.group_fragments(fragments) == ['x']


class TestRelevanceFilter:
    """Test keyword-based relevance filtering."""

    def test_keeps_keyword_lines_with_original_indices(self):
        """Test that relevant lines keep order and numbering."""
        lines = LineReconstructor().reconstruct_lines(DELIVERY_TEXT)
        relevant = filter_relevant(lines, ExtractionConfig().relevance_keywords)

        assert [line.index for line in relevant] == [2, 3, 4]

    def test_no_keyword_gives_empty_result(self):
        """Test that a document without keywords keeps nothing."""
        lines = [LogicalLine(1, 'hola'), LogicalLine(2, 'mundo')]

        assert filter_relevant(lines, ['TUBOS PVC']) == []

    def test_keyword_match_is_case_sensitive(self):
        """Test that keywords are matched exactly."""
        lines = [LogicalLine(1, 'tubos pvc'), LogicalLine(2, 'TUBOS PVC')]

        assert [line.index for line in filter_relevant(lines, ['TUBOS PVC'])] == [2]
