"""Tests for input files, detectors, hashing, extraction and discovery."""

from __future__ import annotations

import hashlib
import os
import time
from datetime import datetime, timezone
from pathlib import Path

import pytest

from batchorg.config.models import OrganizationRules
from batchorg.ingestion import (
    DirectoryScanner,
    HashComputer,
    InputFile,
    InputFileError,
    TextExtractor,
    TypeDetector,
)
from batchorg.organization import PathResolver

MARCH_2024 = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def test_input_file_from_path_reads_stat(tmp_path: Path) -> None:
    target = tmp_path / "Report.PDF"
    target.write_bytes(b"%PDF-1.4")
    stamp = MARCH_2024.timestamp()
    os.utime(target, (stamp, stamp))

    file = InputFile.from_path(target)

    assert file.name == "Report.PDF"
    assert file.size_bytes == 8
    assert file.last_modified == MARCH_2024
    assert file.media_type == "application/pdf"
    assert file.extension == ".pdf"
    assert file.identity_key == f"Report.PDF-8-{int(stamp * 1000)}"
    assert file.read_bytes() == b"%PDF-1.4"


def test_scanned_files_are_dated_in_local_time(tmp_path: Path) -> None:
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is unavailable on this platform")
    target = tmp_path / "late.txt"
    target.write_text("written late on the last day of March", encoding="utf-8")
    stamp = datetime(2024, 4, 1, 2, 0, tzinfo=timezone.utc).timestamp()
    os.utime(target, (stamp, stamp))

    previous = os.environ.get("TZ")
    os.environ["TZ"] = "America/New_York"
    time.tzset()
    try:
        file = InputFile.from_path(target)
        path = PathResolver().resolve(
            file, OrganizationRules(organize_by_type=False, organize_by_size=False)
        )
    finally:
        if previous is None:
            os.environ.pop("TZ", None)
        else:
            os.environ["TZ"] = previous
        time.tzset()

    assert file.last_modified.timestamp() == stamp
    assert (file.last_modified.month, file.last_modified.day) == (3, 31)
    assert path == "2024/03/late.txt"


def test_input_file_from_missing_path_raises(tmp_path: Path) -> None:
    with pytest.raises(InputFileError):
        InputFile.from_path(tmp_path / "missing.txt")


def test_input_file_without_content_cannot_be_read() -> None:
    file = InputFile(name="ghost.txt", size_bytes=3, last_modified=MARCH_2024)

    with pytest.raises(InputFileError):
        file.read_bytes()


def test_extension_is_empty_without_suffix() -> None:
    assert InputFile.from_bytes("Makefile", b"all:").extension == ""
    assert InputFile.from_bytes("archive.tar.GZ", b"x").extension == ".gz"


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("photo.JPG", "image"),
        ("report.pdf", "document"),
        ("budget.xlsx", "spreadsheet"),
        ("deck.pptx", "presentation"),
        ("clip.mov", "video"),
        ("song.flac", "audio"),
        ("backup.7z", "archive"),
        ("main.py", "code"),
        ("drawing.dwg", "dwg"),
        ("README", "unknown"),
    ],
)
def test_file_type_buckets(name: str, expected: str) -> None:
    assert TypeDetector().file_type(name) == expected


def test_size_category_thresholds() -> None:
    detector = TypeDetector()
    mebibyte = 1024 * 1024

    assert detector.size_category(0) == "small"
    assert detector.size_category(mebibyte - 1) == "small"
    assert detector.size_category(mebibyte) == "medium"
    assert detector.size_category(10 * mebibyte - 1) == "medium"
    assert detector.size_category(10 * mebibyte) == "large"


def test_is_image_uses_media_type() -> None:
    detector = TypeDetector()

    assert detector.is_image(InputFile.from_bytes("photo.png", b"\x89PNG"))
    assert not detector.is_image(InputFile.from_bytes("notes.txt", b"hi"))


def test_hash_is_sha256_of_content(tmp_path: Path) -> None:
    path = tmp_path / "a.bin"
    path.write_bytes(b"same bytes")
    hasher = HashComputer()

    from_disk = hasher.compute(InputFile.from_path(path))
    in_memory = hasher.compute(InputFile.from_bytes("b.bin", b"same bytes"))

    assert from_disk == hashlib.sha256(b"same bytes").hexdigest()
    assert from_disk == in_memory
    assert len(from_disk) == 64


def test_hash_of_unreadable_file_raises(tmp_path: Path) -> None:
    path = tmp_path / "gone.txt"
    path.write_text("soon deleted", encoding="utf-8")
    file = InputFile.from_path(path)
    path.unlink()

    with pytest.raises(InputFileError):
        HashComputer().compute(file)


def test_text_extraction_policy() -> None:
    extractor = TextExtractor()

    text_file = InputFile.from_bytes("notes.txt", b"plain text body")
    json_file = InputFile.from_bytes("data.json", b'{"a": 1}')
    pdf_file = InputFile.from_bytes("report.pdf", b"%PDF" * 10)
    other = InputFile.from_bytes("photo.docx", b"PK", media_type="application/msword")

    assert extractor.extract(text_file) == "plain text body"
    assert extractor.extract(json_file) == '{"a": 1}'
    assert extractor.extract(pdf_file) == (
        "PDF Document: report.pdf\nSize: 40 bytes\n"
        "This is a PDF file that requires specialized parsing."
    )
    assert extractor.extract(other) == (
        "Document: photo.docx\nType: application/msword\nSize: 2 bytes"
    )


def test_metadata_estimates_pages() -> None:
    extractor = TextExtractor()

    metadata = extractor.metadata(" ".join(["word"] * 251))

    assert metadata.word_count == 251
    assert metadata.page_count == 2
    assert metadata.language == "en"
    assert extractor.metadata("").page_count == 0


def test_scanner_respects_recursion_and_hidden(tmp_path: Path) -> None:
    (tmp_path / "b.txt").write_text("b", encoding="utf-8")
    (tmp_path / "a.txt").write_text("a", encoding="utf-8")
    (tmp_path / ".hidden").write_text("h", encoding="utf-8")
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "c.txt").write_text("c", encoding="utf-8")

    flat = DirectoryScanner(
        recursive=False, include_hidden=False, follow_symlinks=False, max_size_bytes=None
    )
    deep = DirectoryScanner(
        recursive=True, include_hidden=True, follow_symlinks=False, max_size_bytes=None
    )

    assert [file.name for file in flat.collect([tmp_path])] == ["a.txt", "b.txt"]
    assert sorted(file.name for file in deep.collect([tmp_path])) == [
        ".hidden",
        "a.txt",
        "b.txt",
        "c.txt",
    ]


def test_scanner_skips_oversized_and_deduplicates(tmp_path: Path) -> None:
    small = tmp_path / "small.txt"
    small.write_text("ok", encoding="utf-8")
    big = tmp_path / "big.bin"
    big.write_bytes(b"x" * 32)

    scanner = DirectoryScanner(
        recursive=False, include_hidden=False, follow_symlinks=False, max_size_bytes=16
    )
    batch = scanner.collect([tmp_path, small])

    assert [file.name for file in batch] == ["small.txt"]
    assert scanner.skipped == [big]


def test_scanner_missing_root_raises(tmp_path: Path) -> None:
    scanner = DirectoryScanner(
        recursive=False, include_hidden=False, follow_symlinks=False, max_size_bytes=None
    )

    with pytest.raises(InputFileError):
        scanner.collect([tmp_path / "absent"])
