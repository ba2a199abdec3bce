# app/utils/exporter_utils.py

import csv
import json
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO, StringIO
from typing import Any, Dict, List, Tuple

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.utils.logger import get_logger

logger = get_logger(__name__)

# formato -> (media type, file extension)
EXPORT_FORMATS: Dict[str, Tuple[str, str]] = {
    "excel": ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"),
    "csv": ("text/csv", "csv"),
    "pdf": ("application/pdf", "pdf"),
    "json": ("application/json", "json"),
}


def _cell_value(value: Any) -> Any:
    """Numbers and dates stay typed for spreadsheets, everything else becomes text"""
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (int, float, date, datetime)):
        return value
    return str(value)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


class BaseExporter:
    """Abstract base class for report exporters."""
    def __init__(self, data: List[Dict[str, Any]], title: str = "Reporte"):
        if not data:
            raise ValueError("No data provided for export.")
        self.data = data
        self.title = title
        self.headers = list(data[0].keys())

    def export(self) -> BytesIO:
        raise NotImplementedError


class ExcelExporter(BaseExporter):
    """Single sheet workbook with a bold header row and an auto filter"""
    def export(self) -> BytesIO:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = self.title[:31]

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill("solid", fgColor="2F5597")
        thin = Side(style="thin")
        border = Border(left=thin, right=thin, top=thin, bottom=thin)

        for col_num, header in enumerate(self.headers, 1):
            cell = sheet.cell(row=1, column=col_num, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center", vertical="center")
            cell.border = border
            sheet.column_dimensions[cell.column_letter].width = max(14, len(header) + 4)

        for row_num, row in enumerate(self.data, 2):
            for col_num, header in enumerate(self.headers, 1):
                cell = sheet.cell(row=row_num, column=col_num, value=_cell_value(row.get(header)))
                cell.border = border

        sheet.auto_filter.ref = sheet.dimensions
        output = BytesIO()
        workbook.save(output)
        output.seek(0)
        return output


class CSVExporter(BaseExporter):
    def export(self) -> BytesIO:
        string_io = StringIO()
        writer = csv.DictWriter(string_io, fieldnames=self.headers, extrasaction="ignore")
        writer.writeheader()
        for row in self.data:
            writer.writerow({header: _text(row.get(header)) for header in self.headers})

        # utf-8-sig so spreadsheets open accented names correctly
        output = BytesIO(string_io.getvalue().encode("utf-8-sig"))
        output.seek(0)
        return output


class PDFExporter(BaseExporter):
    """Landscape A4 table with the report title on top"""
    def export(self) -> BytesIO:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=landscape(A4), rightMargin=20,
            leftMargin=20, topMargin=20, bottomMargin=20
        )
        styles = getSampleStyleSheet()

        table_data = [self.headers]
        for row in self.data:
            table_data.append([_text(row.get(header)) for header in self.headers])

        table = Table(table_data, repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2F5597")),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("ALIGN", (0, 0), (-1, -1), "LEFT"),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 7),
            ("BACKGROUND", (0, 1), (-1, -1), colors.whitesmoke),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ]))

        doc.build([Paragraph(self.title, styles["Title"]), Spacer(1, 12), table])
        buffer.seek(0)
        return buffer


class JSONExporter(BaseExporter):
    def export(self) -> BytesIO:
        json_string = json.dumps(self.data, indent=2, default=_text, ensure_ascii=False)
        output = BytesIO(json_string.encode("utf-8"))
        output.seek(0)
        return output


class ExporterFactory:
    """Factory to get the correct exporter based on the format."""

    _exporters = {
        "excel": ExcelExporter,
        "csv": CSVExporter,
        "pdf": PDFExporter,
        "json": JSONExporter,
    }

    @staticmethod
    def get_exporter(format_type: str, data: List[Dict[str, Any]], title: str = "Reporte") -> BaseExporter:
        """
        Returns an instance of the exporter for ``format_type``.

        Raises:
            ValueError: Unknown format or empty data
        """
        exporter_cls = ExporterFactory._exporters.get((format_type or "").lower())
        if exporter_cls is None:
            raise ValueError(f"Unsupported export format: {format_type}")
        return exporter_cls(data, title)
