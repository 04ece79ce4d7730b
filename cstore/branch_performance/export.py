# cstore/branch_performance/export.py
"""
Report Export for Branch Performance

- Excel (openpyxl): "Summary Overview" + "Raw Sales Data" sheets
- PDF (reportlab): KPI table + branch performance table

Exporters read the DashboardSummary and never modify it. Both return
None when there is no summary to export.
"""

import logging
from datetime import date
from io import BytesIO
from typing import Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .constants import (
    DEFAULT_CURRENCY,
    EXCEL_STYLES,
    PDF_STYLES,
    RECORD_COLUMNS,
    REPORT_FILE_PREFIX,
    REPORT_TITLE,
    UPLOAD_HEADERS,
)
from .filters import date_text
from .metrics import average_order_value, numeric_column
from .models import DashboardSummary, FilterState

logger = logging.getLogger(__name__)


def report_filename(extension: str, today: date = None) -> str:
    today = today or date.today()
    return f"{REPORT_FILE_PREFIX}_{today.isoformat()}.{extension}"


def _rgb(values) -> colors.Color:
    r, g, b = values
    return colors.Color(r / 255, g / 255, b / 255)


class BranchPerformanceExport:
    """
    Excel/PDF report generator.

    Usage:
        exporter = BranchPerformanceExport()
        excel_bytes = exporter.create_excel_report(summary, sales_df)
        pdf_bytes = exporter.create_pdf_report(summary)
    """

    def __init__(self, currency: str = DEFAULT_CURRENCY):
        self.currency = currency
        self.wb = None
        self._init_styles()

    def _init_styles(self):
        self.header_fill = PatternFill(
            start_color=EXCEL_STYLES['header_fill_color'],
            end_color=EXCEL_STYLES['header_fill_color'],
            fill_type='solid'
        )
        self.header_font = Font(bold=True, color=EXCEL_STYLES['header_font_color'], size=11)
        self.title_font = Font(bold=True, size=16)
        self.subtitle_font = Font(bold=True, size=12)

        thin_border = Side(style='thin', color='000000')
        self.cell_border = Border(left=thin_border, right=thin_border, top=thin_border, bottom=thin_border)

        self.center_align = Alignment(horizontal='center', vertical='center')
        self.right_align = Alignment(horizontal='right', vertical='center')

    # =========================================================================
    # EXCEL
    # =========================================================================

    def create_excel_report(self, summary: Optional[DashboardSummary],
                            sales_df: pd.DataFrame,
                            filters: FilterState = None,
                            generated_on: date = None) -> Optional[bytes]:
        """Summary sheet + raw records sheet as xlsx bytes."""
        if summary is None:
            return None

        generated_on = generated_on or date.today()
        self.wb = Workbook()
        self._create_summary_sheet(summary, filters, generated_on)
        self._create_raw_data_sheet(sales_df)

        if 'Sheet' in self.wb.sheetnames:
            del self.wb['Sheet']

        output = BytesIO()
        self.wb.save(output)
        logger.info(f"Excel report created: {report_filename('xlsx', generated_on)}")
        return output.getvalue()

    def _write_header_row(self, ws, row: int, headers):
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col, value=header)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.border = self.cell_border
            cell.alignment = self.center_align

    def _create_summary_sheet(self, summary: DashboardSummary, filters: Optional[FilterState],
                              generated_on: date):
        ws = self.wb.create_sheet("Summary Overview", 0)

        ws['A1'] = REPORT_TITLE
        ws['A1'].font = self.title_font
        ws.merge_cells('A1:F1')
        ws['A2'] = f"Generated on: {generated_on.isoformat()}"
        ws['A2'].font = Font(italic=True, size=10)
        if filters is not None:
            ws['A3'] = f"Filters: {filters.summary_label()}"
            ws['A3'].font = Font(italic=True, size=10)

        row = 5
        ws[f'A{row}'] = "OVERALL KPI SUMMARY"
        ws[f'A{row}'].font = self.subtitle_font
        row += 1
        self._write_header_row(ws, row, ['Metric', 'Value'])
        row += 1

        kpis = [
            ("Total Sales", summary.total_sales, EXCEL_STYLES['currency_format']),
            ("Total Orders", summary.total_orders, EXCEL_STYLES['currency_format']),
            ("Total Target", summary.total_target, EXCEL_STYLES['currency_format']),
            ("Achievement %", summary.overall_achievement, EXCEL_STYLES['percent_format']),
            ("Avg. Order Value (AOV)", summary.overall_aov, EXCEL_STYLES['decimal_format']),
        ]
        for label, value, number_format in kpis:
            ws.cell(row=row, column=1, value=label).font = Font(bold=True)
            cell = ws.cell(row=row, column=2, value=value)
            cell.number_format = number_format
            cell.alignment = self.right_align
            row += 1

        row += 1
        ws[f'A{row}'] = "BRANCH PERFORMANCE"
        ws[f'A{row}'].font = self.subtitle_font
        row += 1
        self._write_header_row(ws, row, ['Branch', 'Sales', 'Orders', 'Target', 'Achievement %', 'AOV'])
        row += 1

        formats = [
            EXCEL_STYLES['currency_format'],
            EXCEL_STYLES['currency_format'],
            EXCEL_STYLES['currency_format'],
            EXCEL_STYLES['percent_format'],
            EXCEL_STYLES['decimal_format'],
        ]
        for b in summary.branch_metrics:
            ws.cell(row=row, column=1, value=b.branch_name).border = self.cell_border
            values = [b.total_sales, b.total_orders, b.total_target, b.achievement_percentage, b.aov]
            for col, (value, number_format) in enumerate(zip(values, formats), 2):
                cell = ws.cell(row=row, column=col, value=value)
                cell.number_format = number_format
                cell.border = self.cell_border
                cell.alignment = self.right_align
            row += 1

        ws.column_dimensions['A'].width = 28
        for col in range(2, 7):
            ws.column_dimensions[get_column_letter(col)].width = 16

    def _create_raw_data_sheet(self, sales_df: pd.DataFrame):
        ws = self.wb.create_sheet("Raw Sales Data")
        headers = [UPLOAD_HEADERS[c] for c in RECORD_COLUMNS] + ['AOV']
        self._write_header_row(ws, 1, headers)

        if sales_df is not None and not sales_df.empty:
            sales = numeric_column(sales_df, 'sales_value')
            orders = numeric_column(sales_df, 'orders_count')
            targets = numeric_column(sales_df, 'target_value')
            rows = zip(date_text(sales_df['date']).fillna(''), sales_df['branch_name'], sales_df['channel_name'],
                       sales, orders, targets)

            for row_idx, (d, branch, channel, s, o, t) in enumerate(rows, 2):
                values = [d, branch, channel, s, o, t,
                          round(average_order_value(s, o), 2)]
                for col_idx, value in enumerate(values, 1):
                    cell = ws.cell(row=row_idx, column=col_idx, value=value)
                    if col_idx >= 4:
                        cell.number_format = (
                            EXCEL_STYLES['decimal_format'] if col_idx == 7
                            else EXCEL_STYLES['currency_format']
                        )

        for col_idx, header in enumerate(headers, 1):
            ws.column_dimensions[get_column_letter(col_idx)].width = max(len(header) + 4, 12)
        ws.freeze_panes = 'A2'

    # =========================================================================
    # PDF
    # =========================================================================

    def _money(self, value: float, decimals: int = 0) -> str:
        return f"{self.currency} {value:,.{decimals}f}"

    def create_pdf_report(self, summary: Optional[DashboardSummary],
                          filters: FilterState = None,
                          generated_on: date = None) -> Optional[bytes]:
        """KPI + branch tables as PDF bytes."""
        if summary is None:
            return None

        generated_on = generated_on or date.today()
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=A4,
            leftMargin=14 * mm, rightMargin=14 * mm,
            topMargin=14 * mm, bottomMargin=18 * mm,
            title=REPORT_TITLE,
        )

        styles = getSampleStyleSheet()
        banner_style = ParagraphStyle(
            'Banner', parent=styles['Title'],
            textColor=colors.white, backColor=_rgb(PDF_STYLES['banner_color']),
            borderPadding=(8, 8, 8, 8), fontSize=20, leading=24,
        )
        story = [
            Paragraph(REPORT_TITLE.upper(), banner_style),
            Spacer(1, 6 * mm),
            Paragraph(f"Performance Intelligence - {generated_on.isoformat()}", styles['Normal']),
        ]
        if filters is not None and not filters.is_empty():
            story.append(Paragraph(f"Filters: {filters.summary_label()}", styles['Normal']))
        story.append(Spacer(1, 6 * mm))

        story.append(Paragraph("Key Performance Indicators", styles['Heading2']))
        kpi_rows = [
            ['Metric', 'Value'],
            ['Total Sales', self._money(summary.total_sales)],
            ['Total Orders', f"{summary.total_orders:,.0f}"],
            ['Total Target', self._money(summary.total_target)],
            ['Overall Achievement', f"{summary.overall_achievement:.1f}%"],
            ['Avg. Order Value (AOV)', self._money(summary.overall_aov, 2)],
        ]
        story.append(self._pdf_table(kpi_rows, PDF_STYLES['kpi_header_color'], striped=True))
        story.append(Spacer(1, 8 * mm))

        story.append(Paragraph("Branch Performance", styles['Heading2']))
        branch_rows = [['Branch', 'Sales', 'Orders', 'Achievement', 'AOV']]
        for b in summary.branch_metrics:
            branch_rows.append([
                b.branch_name,
                self._money(b.total_sales),
                f"{b.total_orders:,.0f}",
                f"{b.achievement_percentage:.1f}%",
                self._money(b.aov, 2),
            ])
        story.append(self._pdf_table(branch_rows, PDF_STYLES['branch_header_color'], striped=False))

        doc.build(story, onFirstPage=self._pdf_footer, onLaterPages=self._pdf_footer)
        logger.info(f"PDF report created: {report_filename('pdf', generated_on)}")
        return buffer.getvalue()

    def _pdf_table(self, rows, header_color, striped: bool) -> Table:
        table = Table(rows, repeatRows=1, hAlign='LEFT')
        style = [
            ('BACKGROUND', (0, 0), (-1, 0), _rgb(header_color)),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('ALIGN', (1, 1), (-1, -1), 'RIGHT'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 5),
            ('TOPPADDING', (0, 0), (-1, -1), 5),
        ]
        if striped:
            style.append(('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f2f2f2')]))
        else:
            style.append(('GRID', (0, 0), (-1, -1), 0.5, colors.grey))
        table.setStyle(TableStyle(style))
        return table

    @staticmethod
    def _pdf_footer(canvas, doc):
        canvas.saveState()
        canvas.setFont('Helvetica', 8)
        canvas.setFillColor(colors.grey)
        canvas.drawCentredString(
            A4[0] / 2, 10 * mm,
            f"Page {doc.page} | C Store Online Sales Intelligence"
        )
        canvas.restoreState()
