"""
Report Writer Module
Writes extracted transaction records as PDF, JSON or CSV reports.
"""

import csv
import json
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional
from reportlab.lib.pagesizes import letter
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, PageBreak
from reportlab.lib.enums import TA_CENTER
from extractors.records import TransactionRecord

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "date", "merchant", "amount", "transaction_type", "source",
    "bank", "category", "upi_id",
]

HEADER_COLOR = colors.HexColor('#2c5aa0')
STRIPE_COLOR = colors.HexColor('#e8eef7')
GRID_COLOR = colors.HexColor('#808183')

# {source: {month: {'credits': [...], 'debits': [...]}}}
GroupedRecords = dict[str, dict[str, dict[str, list[TransactionRecord]]]]


class ReportWriteError(Exception):
    """Raised when a report cannot be written."""
    pass


def _signed_total(records: list[TransactionRecord]) -> Decimal:
    total = Decimal("0.00")
    for record in records:
        if record.transaction_type.value == "credit":
            total += record.amount
        else:
            total -= record.amount
    return total


def _format_signed(total: Decimal) -> str:
    return f"+{total:.2f}" if total >= 0 else f"{total:.2f}"


class PDFReportWriter:
    """Generates PDF reports from grouped transaction records."""

    def __init__(self, output_path: str, page_size=letter):
        """
        Initialize PDF writer.

        Args:
            output_path: Path where PDF will be saved
            page_size: Page size (default: letter)
        """
        self.output_path = output_path
        self.page_size = page_size
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Setup custom paragraph styles."""
        self.styles.add(ParagraphStyle(
            name='CustomTitle',
            parent=self.styles['Heading1'],
            fontSize=24,
            textColor=colors.HexColor('#1a1a1a'),
            spaceAfter=30,
            alignment=TA_CENTER,
            fontName='Helvetica-Bold'
        ))

        self.styles.add(ParagraphStyle(
            name='SectionHeading',
            parent=self.styles['Heading2'],
            fontSize=16,
            textColor=HEADER_COLOR,
            spaceAfter=12,
            spaceBefore=20,
            fontName='Helvetica-Bold'
        ))

        self.styles.add(ParagraphStyle(
            name='InfoText',
            parent=self.styles['Normal'],
            fontSize=11,
            textColor=colors.HexColor('#444444'),
            spaceAfter=6
        ))

    def generate_report(
        self,
        grouped_data: GroupedRecords,
        total_transactions: int,
        start_month: Optional[str] = None,
        end_month: Optional[str] = None,
        keywords: Optional[list[str]] = None
    ):
        """
        Generate PDF report with one section per source, split by month
        into credits and debits.

        Raises:
            ValueError: If grouped_data is not a dictionary
            ReportWriteError: If the file cannot be written
        """
        if grouped_data is None or not isinstance(grouped_data, dict):
            raise ValueError("grouped_data must be a dictionary")

        logger.info(f"Generating PDF report: {self.output_path}")
        logger.info(f"Report contains {len(grouped_data)} sources, {total_transactions} total transactions")

        try:
            output_path = Path(self.output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)

            doc = SimpleDocTemplate(
                str(output_path),
                pagesize=self.page_size,
                rightMargin=0.75*inch,
                leftMargin=0.75*inch,
                topMargin=0.75*inch,
                bottomMargin=0.75*inch
            )

            story = self._create_header(total_transactions, start_month, end_month, keywords)

            if not grouped_data:
                logger.warning("No transactions to include in report")
                story.append(Paragraph("No transactions found matching the criteria.", self.styles['InfoText']))
            else:
                for source in sorted(grouped_data):
                    if grouped_data[source]:
                        logger.debug(f"Adding section for source '{source}'")
                        story.extend(self._create_source_section(source, grouped_data[source]))

            doc.build(story)
            logger.info(f"PDF report generated successfully: {self.output_path}")

        except PermissionError as e:
            logger.error(f"Permission denied writing to {self.output_path}: {e}")
            raise ReportWriteError(
                f"Cannot write to {self.output_path}. File may be open or directory is read-only."
            ) from e

        except OSError as e:
            logger.error(f"OS error writing PDF: {e}", exc_info=True)
            raise ReportWriteError(f"Failed to write PDF file: {e}") from e

    def _create_header(
        self,
        total_transactions: int,
        start_month: Optional[str],
        end_month: Optional[str],
        keywords: Optional[list[str]]
    ) -> list:
        """Create report header section."""
        elements = [
            Paragraph("SMS Transaction Report", self.styles['CustomTitle']),
            Spacer(1, 0.2 * inch),
        ]

        info_lines = [
            f"<b>Generated:</b> {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
            f"<b>Total Transactions:</b> {total_transactions}",
        ]
        if start_month and end_month:
            info_lines.insert(0, f"<b>Date Range:</b> {start_month} to {end_month}")
        if keywords:
            info_lines.insert(0, f"<b>Keywords:</b> {self._escape(', '.join(keywords))}")

        for line in info_lines:
            elements.append(Paragraph(line, self.styles['InfoText']))

        elements.append(Spacer(1, 0.3 * inch))
        return elements

    def _create_source_section(
        self,
        source: str,
        source_data: dict[str, dict[str, list[TransactionRecord]]]
    ) -> list:
        """
        Create section for one source with all its months and a totals table.

        Args:
            source: Bank/app code or pattern name
            source_data: {month: {'credits': [...], 'debits': [...]}}
        """
        elements = [Paragraph(self._escape(source), self.styles['SectionHeading'])]

        total_credits = Decimal("0.00")
        total_debits = Decimal("0.00")

        for month in sorted(source_data):
            month_name = self._format_month_heading(month)
            for key, label in (('credits', 'Credits'), ('debits', 'Debits')):
                records = source_data[month].get(key, [])
                if not records:
                    continue
                if key == 'credits':
                    total_credits += sum((r.amount for r in records), Decimal("0.00"))
                else:
                    total_debits += sum((r.amount for r in records), Decimal("0.00"))
                elements.append(self._create_transaction_table(records, month_name, source, label))
                elements.append(Spacer(1, 0.15 * inch))

        elements.append(Spacer(1, 0.2 * inch))
        elements.append(self._create_totals_table(source, total_credits, total_debits))
        elements.append(PageBreak())
        return elements

    def _create_transaction_table(
        self,
        records: list[TransactionRecord],
        month: str = '',
        source: str = '',
        transaction_type: str = ''
    ) -> Table:
        """
        Create table of records with context header.

        Returns:
            reportlab Table object
        """
        data = [
            [month, source, transaction_type, ''],
            ['Date', 'Merchant', 'Category', 'Amount'],
        ]

        for record in records:
            data.append([
                record.date,
                self._truncate(record.merchant, max_length=45),
                record.category or '',
                record.amount_display,
            ])

        data.append(['', '', 'TOTAL', _format_signed(_signed_total(records))])

        table = Table(data, colWidths=[1.1 * inch, 3.2 * inch, 1.4 * inch, 1.2 * inch])
        table.setStyle(TableStyle([
            # Context and column header rows
            ('BACKGROUND', (0, 0), (-1, 1), HEADER_COLOR),
            ('TEXTCOLOR', (0, 0), (-1, 1), colors.white),
            ('FONTNAME', (0, 0), (-1, 1), 'Helvetica-Bold'),
            ('ALIGN', (0, 1), (-1, 1), 'CENTER'),

            # Data rows
            ('FONTNAME', (0, 2), (-1, -2), 'Helvetica'),
            ('FONTSIZE', (0, 2), (-1, -2), 10),
            ('ALIGN', (3, 2), (3, -1), 'RIGHT'),

            # Total row
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
            ('LINEABOVE', (0, -1), (-1, -1), 2, colors.black),

            ('GRID', (0, 0), (-1, -1), 1, GRID_COLOR),
            *[('BACKGROUND', (0, i), (-1, i), STRIPE_COLOR)
              for i in range(3, len(data) - 1, 2)]
        ]))
        return table

    def _create_totals_table(self, source: str, total_credits: Decimal, total_debits: Decimal) -> Table:
        """Create source totals summary table."""
        net_total = total_credits - total_debits
        data = [
            [source, '', ''],
            ['Total Credits', 'Total Debits', 'Net Amount'],
            [f"+{total_credits:.2f}", f"-{total_debits:.2f}", _format_signed(net_total)],
        ]

        table = Table(data, colWidths=[2.3 * inch, 2.3 * inch, 2.3 * inch])
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 1), HEADER_COLOR),
            ('TEXTCOLOR', (0, 0), (-1, 1), colors.white),
            ('FONTNAME', (0, 0), (-1, -1), 'Helvetica-Bold'),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('SPAN', (0, 0), (-1, 0)),
            ('GRID', (0, 0), (-1, -1), 1, GRID_COLOR),
        ]))
        return table

    @staticmethod
    def _format_month_heading(month: str) -> str:
        """Format YYYY-MM as e.g. "January 2025"."""
        try:
            return datetime.strptime(month, '%Y-%m').strftime('%B %Y')
        except ValueError:
            return month

    @staticmethod
    def _truncate(text: str, max_length: int = 60) -> str:
        if len(text) <= max_length:
            return text
        return text[:max_length - 3] + "..."

    @staticmethod
    def _escape(text: str) -> str:
        # Paragraph parses its text as markup
        return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def write_json_report(output_path: str, records: list[TransactionRecord], summary: Optional[dict] = None):
    """
    Write records (and an optional summary) as a JSON document.

    Raises:
        ReportWriteError: If the file cannot be written
    """
    payload = {
        "generated_at": datetime.now().isoformat(),
        "summary": summary or {},
        "transactions": [record.to_dict() for record in records],
    }
    try:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open('w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
    except OSError as e:
        logger.error(f"Failed to write JSON report {output_path}: {e}", exc_info=True)
        raise ReportWriteError(f"Failed to write JSON report: {e}") from e

    logger.info(f"JSON report written: {output_path} ({len(records)} transactions)")


def write_csv_report(output_path: str, records: list[TransactionRecord]):
    """
    Write records as CSV, one row per transaction.

    Raises:
        ReportWriteError: If the file cannot be written
    """
    try:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open('w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS, extrasaction='ignore')
            writer.writeheader()
            for record in records:
                writer.writerow(record.to_dict())
    except OSError as e:
        logger.error(f"Failed to write CSV report {output_path}: {e}", exc_info=True)
        raise ReportWriteError(f"Failed to write CSV report: {e}") from e

    logger.info(f"CSV report written: {output_path} ({len(records)} transactions)")


def generate_pdf_report(
    output_path: str,
    grouped_data: GroupedRecords,
    total_transactions: int,
    start_month: Optional[str] = None,
    end_month: Optional[str] = None,
    keywords: Optional[list[str]] = None
):
    """
    Convenience function to generate a PDF report.

    Args:
        output_path: Path where PDF will be saved
        grouped_data: Nested dict {source: {month: {'credits': [...], 'debits': [...]}}}
        total_transactions: Total transaction count
    """
    writer = PDFReportWriter(output_path)
    writer.generate_report(grouped_data, total_transactions, start_month, end_month, keywords)


def write_report(
    output_path: str,
    records: list[TransactionRecord],
    grouped_data: GroupedRecords,
    summary: Optional[dict] = None,
    start_month: Optional[str] = None,
    end_month: Optional[str] = None,
    keywords: Optional[list[str]] = None
):
    """
    Write a report in the format given by the output file suffix.

    Raises:
        ValueError: If the suffix is not .pdf, .json or .csv
        ReportWriteError: If the file cannot be written
    """
    suffix = Path(output_path).suffix.lower()
    if suffix == '.pdf':
        generate_pdf_report(output_path, grouped_data, len(records), start_month, end_month, keywords)
    elif suffix == '.json':
        write_json_report(output_path, records, summary)
    elif suffix == '.csv':
        write_csv_report(output_path, records)
    else:
        raise ValueError(f"Unsupported report format '{suffix}'. Use .pdf, .json or .csv")
