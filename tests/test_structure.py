"""Tests for the shared data models."""

from pathlib import Path

import pytest

from ps_annotator.parsers.structure import (
    AnnotationResult,
    FunctionSpan,
    MatchMode,
    RunSummary,
    SourceDocument,
    SpliceMode,
)


class TestEnums:
    """Tests for mode enums."""

    def test_values(self) -> None:
        assert MatchMode("lazy") is MatchMode.LAZY
        assert SpliceMode("offsets") is SpliceMode.OFFSETS

    def test_string_comparison(self) -> None:
        assert MatchMode.BRACES == "braces"

    def test_unknown(self) -> None:
        with pytest.raises(ValueError):
            SpliceMode("insert")


class TestFunctionSpan:
    """Tests for FunctionSpan."""

    def test_to_dict(self) -> None:
        span = FunctionSpan(name="Foo", start=0, end=18, text="function Foo { 1 }")
        assert span.to_dict() == {
            "name": "Foo",
            "start": 0,
            "end": 18,
            "text": "function Foo { 1 }",
        }

    def test_frozen(self) -> None:
        span = FunctionSpan(name="Foo", start=0, end=1, text="f")
        with pytest.raises(AttributeError):
            span.name = "Bar"  # type: ignore[misc]


class TestSourceDocument:
    """Tests for SourceDocument."""

    def test_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "s.ps1"
        path.write_text("function Ä { 1 }\n", encoding="utf-8")
        doc = SourceDocument.from_file(path)
        assert doc.path == path
        assert doc.text == "function Ä { 1 }\n"

    def test_crlf_kept(self, tmp_path: Path) -> None:
        path = tmp_path / "s.ps1"
        path.write_bytes(b"function A {\r\n  1\r\n}\r\n")
        doc = SourceDocument.from_file(path)
        assert doc.text == "function A {\r\n  1\r\n}\r\n"
        assert doc.newline == "\r\n"

    def test_lf_newline(self) -> None:
        assert SourceDocument(path=None, text="function A { 1 }\n").newline == "\n"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            SourceDocument.from_file(tmp_path / "missing.ps1")


class TestAnnotationResult:
    """Tests for AnnotationResult."""

    def test_defaults(self) -> None:
        result = AnnotationResult(source_path=Path("a"), destination_path=Path("b"))
        assert result.function_count == 0
        assert result.descriptions == []


class TestRunSummary:
    """Tests for RunSummary bookkeeping."""

    def test_defaults(self) -> None:
        summary = RunSummary()
        assert summary.attempted == 0
        assert summary.failed_files == []

    def test_record(self) -> None:
        summary = RunSummary()
        summary.record_success(Path("a.ps1"))
        summary.record_failure(Path("b.ps1"))
        summary.record_success(Path("c.ps1"))
        assert summary.attempted == 3
        assert summary.succeeded == 2
        assert summary.failed == 1
        assert summary.failed_files == ["b.ps1"]
        assert summary.succeeded_files == ["a.ps1", "c.ps1"]

    def test_to_dict(self) -> None:
        summary = RunSummary()
        summary.record_failure(Path("x.ps1"))
        assert summary.to_dict() == {
            "attempted": 1,
            "succeeded": 0,
            "failed": 1,
            "failed_files": ["x.ps1"],
            "succeeded_files": [],
        }
