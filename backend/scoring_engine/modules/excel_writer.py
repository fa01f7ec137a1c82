"""
Excel Writer - exports a ranked batch report to an .xlsx workbook
Rankings, per-factor breakdown and per-entity failures each get their own sheet
"""

import os
from datetime import datetime
from typing import List, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from .logger import get_logger
from .models import BatchReport, PreferenceProfile

GRADE_COLORS = {
    'A': "C6EFCE",
    'B': "DDEBF7",
    'C': "FFF2CC",
    'D': "FCE4D6",
    'F': "F8CBAD",
}


class ScoringReportWriter:
    """Writes a BatchReport to a new workbook."""

    def __init__(self, output_file: str):
        self.output_file = output_file
        self.workbook = Workbook()
        self.logger = get_logger()

        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
        self.title_font = Font(bold=True, size=14)
        self.thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

    def _write_header(self, sheet, row: int, headers: List[str]):
        for col, header in enumerate(headers, start=1):
            cell = sheet.cell(row=row, column=col, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = Alignment(horizontal='center')
            cell.border = self.thin_border

    def write_rankings(self, report: BatchReport, profile: Optional[PreferenceProfile] = None):
        sheet = self.workbook.active
        sheet.title = "Rankings"

        sheet['A1'] = 'RANKINGS'
        sheet['A1'].font = self.title_font
        subtitle = f'Generated: {datetime.now().strftime("%Y-%m-%d %H:%M")}'
        if profile:
            subtitle += f' | Profile: {profile.id} ({profile.preset_name or "custom"})'
        sheet['A2'] = subtitle

        self._write_header(sheet, 3, ['Rank', 'Entity', 'Score', 'Grade', 'Class', 'Recommendation'])
        for width, col in zip((7, 24, 10, 8, 12, 70), 'ABCDEF'):
            sheet.column_dimensions[col].width = width

        for row, score in enumerate(report.results, start=4):
            values = [score.rank, score.entity_id, score.total_score, score.grade,
                      score.classification, score.recommendation]
            for col, value in enumerate(values, start=1):
                cell = sheet.cell(row=row, column=col, value=value)
                cell.border = self.thin_border
            grade_fill = GRADE_COLORS[score.grade]
            sheet.cell(row=row, column=4).fill = PatternFill(
                start_color=grade_fill, end_color=grade_fill, fill_type="solid")
            sheet.cell(row=row, column=3).number_format = '0.00'

    def write_breakdown(self, report: BatchReport):
        sheet = self.workbook.create_sheet("Breakdown")
        self._write_header(sheet, 1, ['Entity', 'Factor', 'Raw Value', 'Normalized', 'Weight',
                                      'Weighted', 'Max', 'Missing?'])
        for width, col in zip((24, 22, 14, 12, 8, 10, 8, 10), 'ABCDEFGH'):
            sheet.column_dimensions[col].width = width

        row = 2
        for score in report.results:
            for factor in score.breakdown:
                raw = factor.raw_value if factor.raw_value is not None else ''
                values = [score.entity_id, factor.factor_name, raw, factor.normalized_score,
                          factor.weight, factor.weighted_score, factor.max_possible,
                          'YES' if factor.missing_data else '']
                for col, value in enumerate(values, start=1):
                    sheet.cell(row=row, column=col, value=value)
                if factor.missing_data:
                    sheet.cell(row=row, column=8).font = Font(color="C00000", bold=True)
                row += 1

    def write_failures(self, report: BatchReport):
        sheet = self.workbook.create_sheet("Failures")
        self._write_header(sheet, 1, ['Entity', 'Error', 'Message'])
        sheet.column_dimensions['A'].width = 24
        sheet.column_dimensions['B'].width = 26
        sheet.column_dimensions['C'].width = 80

        for row, failure in enumerate(report.failures, start=2):
            sheet.cell(row=row, column=1, value=failure.entity_id)
            sheet.cell(row=row, column=2, value=failure.error)
            sheet.cell(row=row, column=3, value=failure.message)

    def save(self):
        directory = os.path.dirname(self.output_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self.workbook.save(self.output_file)
        self.logger.info(f"Saved scoring report to: {self.output_file}")

    def close(self):
        self.workbook.close()


def export_report(report: BatchReport, output_file: str,
                  profile: Optional[PreferenceProfile] = None) -> str:
    """Write all three sheets and save. Returns the output path."""
    writer = ScoringReportWriter(output_file)
    try:
        writer.write_rankings(report, profile)
        writer.write_breakdown(report)
        writer.write_failures(report)
        writer.save()
    finally:
        writer.close()
    return output_file
