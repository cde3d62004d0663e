from __future__ import annotations

import json
from datetime import date

import pytest

from loaders.message_loader import MessageLoadError, RawMessage, load_messages, load_multiple_files


def test_load_text_one_message_per_line(write_file) -> None:
    path = write_file(
        "inbox.txt",
        "You spent $50.00 at Amazon on 2025-08-16\n\n  Your OTP is 1234\n",
    )

    messages = load_messages(path)

    assert messages == [
        RawMessage(body="You spent $50.00 at Amazon on 2025-08-16"),
        RawMessage(body="  Your OTP is 1234"),
    ]


def test_load_jsonl_with_metadata(write_file) -> None:
    lines = [
        {"body": "You spent $1.00 at A on 2025-01-01", "sender": "BANK", "received_on": "2025-01-02"},
        {"body": "line\nbreak"},
    ]
    path = write_file("inbox.jsonl", "\n".join(json.dumps(line) for line in lines) + "\n\n")

    messages = load_messages(path)

    assert messages[0].sender == "BANK"
    assert messages[0].received_on == date(2025, 1, 2)
    assert messages[1].body == "line\nbreak"
    assert messages[1].sender is None


def test_load_csv(write_file) -> None:
    path = write_file(
        "inbox.csv",
        'body,sender,received_on\n"You spent $1.00 at A, B on 2025-01-01",VM-HDFCBK,2025-01-01\n,,\n',
    )

    messages = load_messages(path)

    assert len(messages) == 1
    assert messages[0].body == "You spent $1.00 at A, B on 2025-01-01"
    assert messages[0].sender == "VM-HDFCBK"


def test_csv_requires_body_column(write_file) -> None:
    path = write_file("inbox.csv", "text,sender\nhello,x\n")

    with pytest.raises(MessageLoadError, match="body"):
        load_messages(path)


@pytest.mark.parametrize(
    ("content", "match"),
    [
        ("not json\n", "Invalid JSON"),
        ('{"sender": "x"}\n', "Missing 'body'"),
        ('{"body": "x", "received_on": "yesterday"}\n', "Invalid received_on"),
    ],
)
def test_bad_jsonl_raises(write_file, content: str, match: str) -> None:
    path = write_file("bad.jsonl", content)

    with pytest.raises(MessageLoadError, match=match):
        load_messages(path)


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(MessageLoadError, match="not found"):
        load_messages(str(tmp_path / "missing.txt"))


def test_unsupported_suffix_raises(write_file) -> None:
    path = write_file("inbox.pdf", "data")

    with pytest.raises(MessageLoadError, match="Unsupported"):
        load_messages(path)


def test_invalid_utf8_raises(tmp_path) -> None:
    path = tmp_path / "latin1.txt"
    path.write_bytes(b"caf\xe9\n")

    with pytest.raises(MessageLoadError, match="UTF-8"):
        load_messages(str(path))


def test_load_multiple_files_skips_failures(write_file, tmp_path) -> None:
    good = write_file("good.txt", "one\ntwo\n")

    messages = load_multiple_files([good, str(tmp_path / "missing.txt")])

    assert [m.body for m in messages] == ["one", "two"]


def test_load_multiple_files_all_failing(tmp_path) -> None:
    with pytest.raises(MessageLoadError, match="All 1 files failed"):
        load_multiple_files([str(tmp_path / "missing.txt")])

    with pytest.raises(MessageLoadError, match="No message files"):
        load_multiple_files([])
