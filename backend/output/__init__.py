"""
Output Module - Report generation.
"""

from .writer import (
    PDFReportWriter,
    ReportWriteError,
    generate_pdf_report,
    write_csv_report,
    write_json_report,
    write_report
)

__all__ = [
    'PDFReportWriter',
    'ReportWriteError',
    'generate_pdf_report',
    'write_csv_report',
    'write_json_report',
    'write_report',
]
