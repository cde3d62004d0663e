"""
SMS Transaction Extractor - Main Pipeline
Orchestrates message loading, extraction, filtering and report generation.
"""

import argparse
import dataclasses
import logging
import sys
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

from config import config
from logging_config import setup_logging
from extractors.patterns import build_registry
from extractors.records import ExtractionStatus, TransactionRecord
from extractors.regex_extractor import TransactionExtractor
from extractors.sms_rules import TransactionType, categorize_merchant, identify_source, is_spam_message
from loaders.message_loader import MessageLoadError, RawMessage, load_multiple_files
from validators.record_validator import RecordValidator
from output.writer import write_report

logger = logging.getLogger(__name__)


def annotate_record(record: TransactionRecord, body: str, sender: Optional[str] = None) -> TransactionRecord:
    """Tag a record with the sending bank/app and a spending category."""
    return dataclasses.replace(
        record,
        bank=identify_source(body, sender),
        category=categorize_merchant(
            record.merchant,
            record.amount,
            Decimal(str(config.HIGH_VALUE_THRESHOLD))
        )
    )


class TransactionFilter:
    """Filters records by keyword and month range."""

    @staticmethod
    def filter_by_keyword(records: list[TransactionRecord], keyword: str) -> list[TransactionRecord]:
        """
        Filter records whose merchant or bank contains keyword (case-insensitive).
        """
        if not keyword:
            return records

        keyword_lower = keyword.lower()
        filtered = [
            record for record in records
            if keyword_lower in record.merchant.lower()
            or keyword_lower in (record.bank or "").lower()
        ]

        logger.info(f"Keyword filter '{keyword}': {len(filtered)}/{len(records)} records matched")
        return filtered

    @staticmethod
    def filter_by_keywords(records: list[TransactionRecord], keywords: list[str]) -> list[TransactionRecord]:
        """
        Keep records matching any of the keywords, preserving input order.
        """
        if not keywords:
            return records

        matched_ids = set()
        for keyword in keywords:
            matched_ids.update(id(record) for record in TransactionFilter.filter_by_keyword(records, keyword))

        return [record for record in records if id(record) in matched_ids]

    @staticmethod
    def filter_by_date_range(
        records: list[TransactionRecord],
        start_month: Optional[str],
        end_month: Optional[str]
    ) -> list[TransactionRecord]:
        """
        Filter records by inclusive month range (YYYY-MM).
        """
        if not start_month or not end_month:
            return records

        filtered = [record for record in records if start_month <= record.month <= end_month]
        logger.info(
            f"Date range filter ({start_month} to {end_month}): "
            f"{len(filtered)}/{len(records)} records kept"
        )
        return filtered


class TransactionGrouper:
    """Groups records by source, month and direction."""

    @staticmethod
    def group_by_month(records: list[TransactionRecord]) -> dict[str, list[TransactionRecord]]:
        grouped = defaultdict(list)
        for record in records:
            grouped[record.month].append(record)
        return dict(grouped)

    @staticmethod
    def group_by_source_month_type(
        records: list[TransactionRecord]
    ) -> dict[str, dict[str, dict[str, list[TransactionRecord]]]]:
        """
        Group records by source (bank/app code, else pattern name), then
        month, then direction.

        Returns:
            Nested dict: {source: {month: {'credits': [...], 'debits': [...]}}}
        """
        by_source = defaultdict(list)
        for record in records:
            by_source[record.bank or record.source].append(record)

        result = {}
        for source, source_records in by_source.items():
            source_data = {}
            for month, month_records in TransactionGrouper.group_by_month(source_records).items():
                month_data = {}
                credits = [r for r in month_records if r.transaction_type == TransactionType.CREDIT]
                debits = [r for r in month_records if r.transaction_type == TransactionType.DEBIT]
                if credits:
                    month_data['credits'] = credits
                if debits:
                    month_data['debits'] = debits
                source_data[month] = month_data
            result[source] = source_data
            logger.info(f"Source '{source}': {len(source_data)} months, {len(source_records)} records")

        return result


class SMSBatchProcessor:
    """Main orchestrator for the batch extraction pipeline."""

    def __init__(
        self,
        extractor: Optional[TransactionExtractor] = None,
        validator: Optional[RecordValidator] = None,
        spam_filter: Optional[bool] = None
    ):
        self.extractor = extractor or TransactionExtractor(build_registry(config.enabled_patterns()))
        self.validator = validator or RecordValidator(
            strict_mode=config.STRICT_MODE,
            allow_zero_amounts=config.ALLOW_ZERO_AMOUNTS,
            strict_dates=config.STRICT_DATES
        )
        self.spam_filter = config.SPAM_FILTER if spam_filter is None else spam_filter
        self.reset_stats()

    def reset_stats(self):
        self.stats = {
            "messages": 0,
            "spam_skipped": 0,
            "matched": 0,
            "no_match": 0,
            "faults": 0,
            "valid_records": 0,
            "after_filters": 0,
        }

    def extract_messages(self, messages: list[RawMessage]) -> list[TransactionRecord]:
        """
        Extract and annotate records from messages.

        Each record is tagged with the sending bank/app and a spending
        category. Messages without a transaction are dropped.
        """
        records = []

        for message in messages:
            self.stats["messages"] += 1

            if self.spam_filter and is_spam_message(message.body):
                self.stats["spam_skipped"] += 1
                logger.debug(f"Skipping spam message: {message.body[:50]}...")
                continue

            result = self.extractor.extract_result(message.body, received_on=message.received_on)

            if result.status == ExtractionStatus.FAULT:
                self.stats["faults"] += 1
                continue
            if result.status == ExtractionStatus.NO_MATCH:
                self.stats["no_match"] += 1
                continue

            self.stats["matched"] += 1
            records.append(annotate_record(result.record, message.body, message.sender))

        logger.info(
            f"Extraction complete: {self.stats['matched']} matched, "
            f"{self.stats['no_match']} unmatched, {self.stats['faults']} faults, "
            f"{self.stats['spam_skipped']} spam skipped"
        )
        return records

    def _validate_inputs(
        self,
        input_paths: list[str],
        output_path: str,
        start_month: Optional[str],
        end_month: Optional[str]
    ):
        """Validate all input parameters."""
        if not input_paths:
            raise ValueError("At least one input file is required")

        if bool(start_month) != bool(end_month):
            raise ValueError("start_month and end_month must be given together")

        if start_month and end_month:
            try:
                datetime.strptime(start_month, '%Y-%m')
                datetime.strptime(end_month, '%Y-%m')
            except ValueError:
                raise ValueError("Months must be in YYYY-MM format")
            if start_month > end_month:
                raise ValueError(f"start_month ({start_month}) must be <= end_month ({end_month})")

        if not output_path:
            raise ValueError("output_path must be a non-empty string")

        if Path(output_path).suffix.lower() not in config.REPORT_FORMATS:
            raise ValueError(f"output_path must end with one of: {', '.join(config.REPORT_FORMATS)}")

    def process(
        self,
        input_paths: list[str],
        output_path: str,
        keywords: Optional[list[str]] = None,
        start_month: Optional[str] = None,
        end_month: Optional[str] = None
    ) -> dict:
        """
        Run the pipeline over message files and write a report.

        Returns:
            Summary dictionary with pipeline statistics

        Raises:
            ValueError: If inputs are invalid
            MessageLoadError: If no message file can be loaded
            ReportWriteError: If the report cannot be written
        """
        logger.info("=" * 80)
        logger.info("Starting SMS Transaction Extraction Pipeline")
        logger.info("=" * 80)

        self._validate_inputs(input_paths, output_path, start_month, end_month)
        self.reset_stats()
        self.validator.reset_stats()

        logger.info(f"Step 1: Loading {len(input_paths)} message file(s)")
        messages = load_multiple_files(input_paths)

        logger.info("Step 2: Extracting transactions")
        records = self.extract_messages(messages)

        logger.info("Step 3: Validating records")
        valid_records = self.validator.validate_records(records)
        self.stats["valid_records"] = len(valid_records)

        logger.info("Step 4: Filtering by keywords and month range")
        filtered = TransactionFilter.filter_by_keywords(valid_records, keywords or [])
        filtered = TransactionFilter.filter_by_date_range(filtered, start_month, end_month)
        self.stats["after_filters"] = len(filtered)

        logger.info("Step 5: Grouping records")
        grouped = TransactionGrouper.group_by_source_month_type(filtered)

        summary = self.get_summary()
        logger.info(f"Step 6: Writing report - {output_path}")
        write_report(
            output_path,
            filtered,
            grouped,
            summary=summary,
            start_month=start_month,
            end_month=end_month,
            keywords=keywords
        )

        self._log_summary()
        return summary

    def get_summary(self) -> dict:
        summary = dict(self.stats)
        summary["validation"] = self.validator.get_stats()
        summary["patterns"] = self.extractor.registry.names()
        return summary

    def _log_summary(self):
        logger.info("=" * 80)
        logger.info("EXTRACTION SUMMARY")
        logger.info(f"Messages read:            {self.stats['messages']}")
        logger.info(f"Spam skipped:             {self.stats['spam_skipped']}")
        logger.info(f"Transactions matched:     {self.stats['matched']}")
        logger.info(f"Valid records:            {self.stats['valid_records']}")
        logger.info(f"Records in report:        {self.stats['after_filters']}")
        logger.info("=" * 80)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sms-extract",
        description="Extract transactions from notification messages and write a report."
    )
    parser.add_argument("inputs", nargs="+", help="Message files (.txt, .jsonl, .csv)")
    parser.add_argument("-o", "--output", default=str(config.get_output_path("transaction_report.pdf")),
                        help="Report path (.pdf, .json or .csv)")
    parser.add_argument("--keywords", default="", help="Comma-separated merchant/bank keywords")
    parser.add_argument("--start-month", help="Start month (YYYY-MM)")
    parser.add_argument("--end-month", help="End month (YYYY-MM)")
    parser.add_argument("--patterns", default=config.ENABLED_PATTERNS,
                        help="Comma-separated pattern names to enable")
    parser.add_argument("--spam-filter", action="store_true", default=config.SPAM_FILTER,
                        help="Skip promotional messages")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Logging level")
    parser.add_argument("--log-file", default=None, help="Log file name inside LOG_DIR")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Command line entry point."""
    args = build_arg_parser().parse_args(argv)

    try:
        setup_logging(log_level=args.log_level, log_file=args.log_file)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    keywords = [k.strip() for k in args.keywords.split(',') if k.strip()]
    pattern_names = [p.strip() for p in args.patterns.split(',') if p.strip()]

    try:
        processor = SMSBatchProcessor(
            extractor=TransactionExtractor(build_registry(pattern_names)),
            spam_filter=args.spam_filter
        )
        summary = processor.process(
            input_paths=args.inputs,
            output_path=args.output,
            keywords=keywords,
            start_month=args.start_month,
            end_month=args.end_month
        )
    except ValueError as e:
        logger.error(f"Invalid input: {e}")
        print(f"Input Error: {e}", file=sys.stderr)
        return 2
    except MessageLoadError as e:
        logger.error(f"Load error: {e}")
        print(f"Load Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.error(f"Processing failed: {e}", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Report generated: {args.output}")
    print(f"Transactions in report: {summary['after_filters']} of {summary['messages']} messages")
    return 0


if __name__ == "__main__":
    sys.exit(main())
