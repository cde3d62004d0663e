from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest

from extractors.diagnostics import MemoryDiagnosticSink
from extractors.patterns import PatternRegistry, TransactionPattern, YOU_SPENT
from extractors.records import ExtractionStatus
from extractors.regex_extractor import TransactionExtractor, extract_transaction
from extractors.sms_rules import TransactionType


class ExplodingPattern(TransactionPattern):
    def __init__(self, name="exploding", priority=1):
        super().__init__(name, r"(?P<amount>x)(?P<merchant>y)", priority=priority)

    def try_extract(self, text, received_on=None):
        raise RuntimeError("engine blew up")


@pytest.fixture
def sink() -> MemoryDiagnosticSink:
    return MemoryDiagnosticSink()


@pytest.fixture
def extractor(sink: MemoryDiagnosticSink) -> TransactionExtractor:
    return TransactionExtractor(diagnostics=sink)


def test_extracts_canonical_message(extractor: TransactionExtractor) -> None:
    record = extractor.extract("You spent $50.00 at Amazon on 2025-08-16")

    assert record is not None
    assert record.amount == Decimal("50.00")
    assert str(record.amount) == "50.00"
    assert record.merchant == "Amazon"
    assert record.date == "2025-08-16"
    assert record.transaction_type == TransactionType.DEBIT
    assert record.source == "you_spent"


def test_pattern_found_mid_string(extractor: TransactionExtractor) -> None:
    record = extractor.extract("Hi! You spent $12.50 at Joe's Cafe on 2024-01-05. Thanks.")

    assert record is not None
    assert record.amount == Decimal("12.50")
    assert record.merchant == "Joe's Cafe"
    assert record.date == "2024-01-05"


@pytest.mark.parametrize(
    "text",
    [
        "You spent $5 at Amazon on 2025-08-16",
        "You spent $5.0 at Amazon on 2025-08-16",
        "You spent $5.000 at Amazon on 2025-08-16",
        "",
        "you spent $50.00 at Amazon on 2025-08-16",
        "You spent 50.00 at Amazon on 2025-08-16",
        "You spent $50.00 at Amazon on 16-08-2025",
        "You spent $50.00 at Amazon",
        "You spent $50.00 at  on 2025-08-16",
        "You spent $1.00 at Foo\nBar on 2024-01-01",
        "INR 250.00 has been debited from your A/c XXXX1234 towards UPI/merchant@okaxis",
    ],
)
def test_non_matching_messages_return_none(extractor: TransactionExtractor, text: str) -> None:
    assert extractor.extract(text) is None
    assert extractor.extract_result(text).status == ExtractionStatus.NO_MATCH


def test_only_first_occurrence_counts(extractor: TransactionExtractor) -> None:
    text = (
        "You spent $1.00 at First on 2024-01-01\n"
        "You spent $2.00 at Second on 2024-01-02"
    )
    record = extractor.extract(text)

    assert record is not None
    assert record.merchant == "First"
    assert record.amount == Decimal("1.00")


def test_merchant_containing_on_is_kept_whole(extractor: TransactionExtractor) -> None:
    record = extractor.extract("You spent $9.99 at Hooligans on Main on 2024-03-01")

    assert record is not None
    assert record.merchant == "Hooligans on Main"
    assert record.date == "2024-03-01"


def test_merchant_stops_at_first_date_token(extractor: TransactionExtractor) -> None:
    record = extractor.extract("You spent $1.00 at Shop on 2024-01-01 on 2024-01-02")

    assert record is not None
    assert record.merchant == "Shop"
    assert record.date == "2024-01-01"


def test_merchant_is_not_trimmed(extractor: TransactionExtractor) -> None:
    record = extractor.extract("You spent $1.00 at  Amazon  on 2025-01-01")

    assert record is not None
    assert record.merchant == " Amazon "


def test_date_is_not_calendar_checked(extractor: TransactionExtractor) -> None:
    record = extractor.extract("You spent $3.00 at Bakery on 2025-02-30")

    assert record is not None
    assert record.date == "2025-02-30"


def test_non_ascii_merchant(extractor: TransactionExtractor) -> None:
    record = extractor.extract("Achat: You spent $3.20 at Café Müller on 2024-02-02 ✓")

    assert record is not None
    assert record.merchant == "Café Müller"


def test_non_ascii_digits_are_not_amounts(extractor: TransactionExtractor) -> None:
    assert extractor.extract("You spent $٥٠.٠٠ at Shop on 2025-08-16") is None


def test_null_bytes_do_not_break_matching(extractor: TransactionExtractor) -> None:
    record = extractor.extract("\x00You spent $1.00 at A\x00B on 2025-01-01\x00")

    assert record is not None
    assert record.merchant == "A\x00B"


@pytest.mark.parametrize(
    "text",
    [
        "$" * 100_000,
        "You spent $" * 20_000,
        "You spent $1.00 at " * 5_000,
        "You spent $" + "1" * 100_000,
        "\x00" * 1_000,
        "😀" * 10_000,
    ],
)
def test_adversarial_input_never_raises(extractor: TransactionExtractor, text: str) -> None:
    assert extractor.extract(text) is None


def test_large_message_warns_but_still_matches(sink: MemoryDiagnosticSink) -> None:
    extractor = TransactionExtractor(diagnostics=sink, large_message_length=20)

    record = extractor.extract("You spent $50.00 at Amazon on 2025-08-16")

    assert record is not None
    assert record.merchant == "Amazon"
    warnings = sink.at_level("warning")
    assert warnings and warnings[0].message == "Unusually large message"
    assert warnings[0].fields["length"] == 40


def test_transaction_deep_inside_long_message(extractor: TransactionExtractor) -> None:
    result = extractor.extract_result("x" * 10_000 + " You spent $50.00 at Amazon on 2025-08-16")

    assert result.status == ExtractionStatus.MATCH
    assert result.record.merchant == "Amazon"
    assert result.record.date == "2025-08-16"


def test_leading_transaction_in_long_message(extractor: TransactionExtractor) -> None:
    text = "You spent $50.00 at Amazon on 2025-08-16 " + "x" * 50_000

    record = extractor.extract(text)

    assert record is not None
    assert record.merchant == "Amazon"


def test_very_large_amount_is_kept_exactly(extractor: TransactionExtractor) -> None:
    digits = "1" * 30

    result = extractor.extract_result(f"You spent ${digits}.00 at Shop on 2025-01-01")

    assert result.status == ExtractionStatus.MATCH
    assert result.record.amount == Decimal(f"{digits}.00")
    assert result.record.to_dict()["amount"] == f"{digits}.00"


@pytest.mark.parametrize("terminator", ["\r", "\x85", "\u2028", "\u2029"])
def test_merchant_does_not_span_line_terminators(
    extractor: TransactionExtractor, terminator: str
) -> None:
    assert extractor.extract(f"You spent $1.00 at A{terminator}B on 2025-01-01") is None


def test_merchant_length_is_bounded(extractor: TransactionExtractor) -> None:
    assert extractor.extract("You spent $1.00 at " + "m" * 256 + " on 2025-01-01") is not None
    assert extractor.extract("You spent $1.00 at " + "m" * 257 + " on 2025-01-01") is None


def test_strings_without_trigger_phrase_never_match(extractor: TransactionExtractor) -> None:
    samples = [
        "Your OTP is 123456",
        "Spent $50.00 at Amazon on 2025-08-16",
        "You  spent $50.00 at Amazon on 2025-08-16",
        "You spent USD 50.00 at Amazon on 2025-08-16",
    ]
    for text in samples:
        assert "You spent $" not in text
        assert extractor.extract(text) is None


def test_extraction_is_idempotent(extractor: TransactionExtractor) -> None:
    text = "Hi! You spent $12.50 at Joe's Cafe on 2024-01-05. Thanks."

    first = extractor.extract_result(text)
    second = extractor.extract_result(text)

    assert first == second
    assert first.record == second.record


def test_concurrent_calls_match_sequential(extractor: TransactionExtractor) -> None:
    texts = [f"You spent ${i}.00 at Shop {i} on 2024-01-{i % 28 + 1:02d}" for i in range(1, 200)]
    texts += ["no transaction here"] * 20

    sequential = [extractor.extract(text) for text in texts]
    with ThreadPoolExecutor(max_workers=8) as pool:
        parallel = list(pool.map(extractor.extract, texts))

    assert parallel == sequential


def test_success_records_diagnostic_with_fields(
    extractor: TransactionExtractor, sink: MemoryDiagnosticSink
) -> None:
    extractor.extract("You spent $50.00 at Amazon on 2025-08-16")

    infos = sink.at_level("info")
    assert len(infos) == 1
    assert infos[0].fields["amount"] == "50.00"
    assert infos[0].fields["merchant"] == "Amazon"
    assert infos[0].fields["date"] == "2025-08-16"


def test_no_match_records_no_diagnostic(
    extractor: TransactionExtractor, sink: MemoryDiagnosticSink
) -> None:
    extractor.extract("Nothing to see")

    assert sink.entries == []


def test_engine_fault_is_absorbed(sink: MemoryDiagnosticSink) -> None:
    extractor = TransactionExtractor(PatternRegistry([ExplodingPattern()]), diagnostics=sink)

    result = extractor.extract_result("You spent $50.00 at Amazon on 2025-08-16")

    assert result.status == ExtractionStatus.FAULT
    assert result.record is None
    assert "RuntimeError" in result.error
    assert extractor.extract("anything") is None
    errors = sink.at_level("error")
    assert errors and errors[0].fields["pattern"] == "exploding"


def test_fault_in_one_pattern_does_not_block_others(sink: MemoryDiagnosticSink) -> None:
    registry = PatternRegistry([ExplodingPattern(priority=1), YOU_SPENT])
    extractor = TransactionExtractor(registry, diagnostics=sink)

    result = extractor.extract_result("You spent $50.00 at Amazon on 2025-08-16")

    assert result.status == ExtractionStatus.MATCH
    assert result.record.merchant == "Amazon"
    assert len(sink.at_level("error")) == 1


def test_malformed_amount_fails_closed(sink: MemoryDiagnosticSink) -> None:
    loose = TransactionPattern("loose", r"amt (?P<amount>[\d.]+) at (?P<merchant>\w+)")
    extractor = TransactionExtractor(PatternRegistry([loose]), diagnostics=sink)

    result = extractor.extract_result("amt 1.2.3 at Shop")

    assert result.status == ExtractionStatus.NO_MATCH
    assert sink.at_level("warning")[0].message == "Matched text rejected"


def test_non_string_input_is_no_match(
    extractor: TransactionExtractor, sink: MemoryDiagnosticSink
) -> None:
    assert extractor.extract(None) is None
    assert extractor.extract(b"You spent $50.00 at Amazon on 2025-08-16") is None
    assert sink.at_level("warning")[0].fields["input_type"] == "NoneType"


def test_default_sink_logs_through_module_logger(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="extractors.regex_extractor")

    record = extract_transaction("You spent $50.00 at Amazon on 2025-08-16")

    assert record is not None
    assert "Transaction extracted" in caplog.text
    assert "merchant=Amazon" in caplog.text


def test_result_to_dict() -> None:
    extractor = TransactionExtractor(diagnostics=MemoryDiagnosticSink())

    data = extractor.extract_result("You spent $50.00 at Amazon on 2025-08-16").to_dict()

    assert data["status"] == "match"
    assert data["error"] is None
    assert data["record"]["amount"] == "50.00"
    assert data["record"]["amount_display"] == "-50.00"
    assert data["record"]["transaction_type"] == "debit"
