"""
Report generator for extraction results.

Turns an ExtractionResult into spreadsheet-style records and writes them as:
1. XLSX - "Extracted Data" sheet with one row per record plus a "Summary" sheet
2. CSV  - the same records, UTF-8 with BOM so Excel opens accents correctly
3. JSON - the full result, fields and metadata

Records are correlated by source line: fields extracted from the same line make
up one row. A field with a single value in the whole document (typically the
load ID) is filled into every row.
"""

import csv
import io
import json
import logging
from pathlib import Path
from typing import Dict, Any, List, Union

import pandas as pd

from extraction.models import ExtractionResult


logger = logging.getLogger(__name__)

DATA_SHEET = 'Extracted Data'
SUMMARY_SHEET = 'Summary'
REPORT_FORMATS = ('xlsx', 'csv', 'json')


class ReportGenerator:
    """Writes extraction results to xlsx, csv or json."""

    def build_records(self, result: ExtractionResult) -> List[Dict[str, str]]:
        """
        Correlate extracted fields into rows.

        Args:
            result: Extraction result

        Returns:
            One dictionary per record, keyed by every field label
        """
        grouped = result.group_by_name()
        columns = list(grouped.keys())

        rows_by_line: Dict[int, Dict[str, str]] = {}
        unattributed: List[Dict[str, str]] = []
        for extracted in result.fields:
            if extracted.source_line <= 0:
                unattributed.append({extracted.name: extracted.value})
                continue
            row = rows_by_line.setdefault(extracted.source_line, {})
            if extracted.name in row:
                row[extracted.name] = f"{row[extracted.name]}, {extracted.value}"
            else:
                row[extracted.name] = extracted.value

        rows = [rows_by_line[line] for line in sorted(rows_by_line)] + unattributed

        for name, values in grouped.items():
            if len(values) == 1:
                for row in rows:
                    row.setdefault(name, values[0])

        return [{column: row.get(column, '') for column in columns} for row in rows]

    def build_summary(self, result: ExtractionResult) -> List[Dict[str, Any]]:
        summary = [{'Field': name, 'Values': len(values)}
                   for name, values in result.group_by_name().items()]
        summary.append({'Field': 'Method', 'Values': result.method or ''})
        summary.append({'Field': 'Lines', 'Values': result.line_count})
        summary.append({'Field': 'Relevant lines', 'Values': result.relevant_line_count})
        return summary

    def generate_json_report(self, result: ExtractionResult) -> str:
        data = result.to_dict()
        data['records'] = self.build_records(result)
        return json.dumps(data, indent=2, ensure_ascii=False)

    def generate_csv_report(self, result: ExtractionResult) -> str:
        records = self.build_records(result)
        columns = list(result.group_by_name().keys())

        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=columns)
        writer.writeheader()
        writer.writerows(records)
        return output.getvalue()

    def write_excel(self, result: ExtractionResult, path: Union[str, Path]) -> Path:
        """
        Write the records and summary sheets to an xlsx workbook.
        """
        path = Path(path)
        columns = list(result.group_by_name().keys())
        records = pd.DataFrame(self.build_records(result), columns=columns)
        summary = pd.DataFrame(self.build_summary(result), columns=['Field', 'Values'])

        with pd.ExcelWriter(path, engine='openpyxl') as writer:
            records.to_excel(writer, sheet_name=DATA_SHEET, index=False)
            summary.to_excel(writer, sheet_name=SUMMARY_SHEET, index=False)
            _fit_column_widths(writer.sheets[DATA_SHEET], records)
            _fit_column_widths(writer.sheets[SUMMARY_SHEET], summary)

        return path

    def write(self, result: ExtractionResult, path: Union[str, Path],
              report_format: str = 'xlsx') -> Path:
        """
        Write a report in the given format.

        Args:
            result: Extraction result
            path: Output file
            report_format: One of 'xlsx', 'csv', 'json'

        Returns:
            Path of the written report
        """
        path = Path(path)
        report_format = report_format.lower()
        if report_format not in REPORT_FORMATS:
            raise ValueError(f"Unsupported report format: {report_format}")

        path.parent.mkdir(parents=True, exist_ok=True)
        if report_format == 'xlsx':
            self.write_excel(result, path)
        elif report_format == 'csv':
            with open(path, 'w', encoding='utf-8-sig', newline='') as f:
                f.write(self.generate_csv_report(result))
        else:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(self.generate_json_report(result))

        logger.info(f"Wrote {report_format} report to {path}")
        return path


def _fit_column_widths(worksheet, frame: pd.DataFrame) -> None:
    """Size each column to its longest cell (capped at 60 characters)."""
    for position, column in enumerate(frame.columns):
        longest = max([len(str(column))] + [len(str(value)) for value in frame[column]])
        letter = worksheet.cell(row=1, column=position + 1).column_letter
        worksheet.column_dimensions[letter].width = min(longest + 2, 60)
