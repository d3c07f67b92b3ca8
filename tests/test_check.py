"""Tests for the proofdoc-check command."""

import pytest

from proofdoc import Bibliography, Document, Manifest, parse_file
from proofdoc.check import RootReport, check_file, check_root, collect_files, dialect_for, main, summarize
from proofdoc.config import CheckConfig
from proofdoc.parser import Dialect

DOCUMENT = '\\Axiom a : s { name = "X"; }\n\nSome prose.\n'
MANIFEST = 'logic : "Logic" { Intro. [ ch : "Chapter" { Basics. [ p : "Page", ] } ] }\n'
BIBLIOGRAPHY = "knuth84 { title { The TeXbook } }\n"


@pytest.fixture
def project(tmp_path, monkeypatch):
    """A small tree with one file of each dialect."""
    monkeypatch.chdir(tmp_path)
    root = tmp_path / "book"
    (root / "logic").mkdir(parents=True)
    (root / "logic" / "axioms.math").write_text(DOCUMENT)
    (root / "manifest.math").write_text(MANIFEST)
    (root / "bib.math").write_text(BIBLIOGRAPHY)
    (root / "notes.txt").write_text("not a source file {")
    return root


class TestDialects:
    def test_dialect_by_name(self, tmp_path):
        config = CheckConfig()
        assert dialect_for(tmp_path / "manifest.math", config) == Dialect.MANIFEST
        assert dialect_for(tmp_path / "bib.math", config) == Dialect.BIBLIOGRAPHY
        assert dialect_for(tmp_path / "logic.math", config) == Dialect.DOCUMENT

    def test_configured_names(self, tmp_path):
        config = CheckConfig(manifest_name="toc.math")
        assert dialect_for(tmp_path / "toc.math", config) == Dialect.MANIFEST
        assert dialect_for(tmp_path / "manifest.math", config) == Dialect.DOCUMENT

    def test_parse_file_detects_dialect(self, project):
        assert isinstance(parse_file(project / "manifest.math"), Manifest)
        assert isinstance(parse_file(project / "bib.math"), Bibliography)
        assert isinstance(parse_file(project / "logic" / "axioms.math"), Document)

    def test_parse_file_explicit_dialect(self, project):
        copy = project / "contents.math"
        copy.write_text(MANIFEST)
        assert isinstance(parse_file(copy, dialect="manifest"), Manifest)


class TestCheckRoot:
    def test_collects_only_sources(self, project):
        files = collect_files(project, CheckConfig())
        assert [f.name for f in files] == ["bib.math", "axioms.math", "manifest.math"]

    def test_all_parse(self, project):
        report = check_root(project, CheckConfig(jobs=2))
        assert (report.ok, report.errors) == (3, [])
        assert report.lines() == [f"  OK    {project}: 3/3 files parse"]

    def test_reports_failures(self, project):
        bad = project / "logic" / "broken.math"
        bad.write_text("\\Theorem t : s {\n")
        report = check_root(project, CheckConfig())
        assert (report.ok, report.total) == (3, 4)
        assert report.errors[0][0] == bad
        assert "unterminated" in report.errors[0][1]

    def test_exclude(self, project):
        drafts = project / "drafts"
        drafts.mkdir()
        (drafts / "wip.math").write_text("}")
        report = check_root(project, CheckConfig(exclude=["drafts/*"]))
        assert (report.ok, report.total) == (3, 3)

    def test_missing_root(self, tmp_path):
        report = check_root(tmp_path / "missing", CheckConfig())
        assert not report.found
        assert report.lines() == [f"  SKIP  {tmp_path / 'missing'} (not found)"]

    def test_deep_nesting_is_a_failure(self, project):
        deep = project / "deep.math"
        deep.write_text("\\Axiom a : s { assertion = " + "(" * 500 + "p" + ")" * 500 + "; }\n")
        assert "nesting deeper than" in check_file(deep, CheckConfig())
        report = check_root(project, CheckConfig(jobs=2))
        assert [f for f, _ in report.errors] == [deep]


class TestSummary:
    def test_all_clear(self, tmp_path):
        lines = summarize([RootReport(tmp_path, ok=2), RootReport(tmp_path, found=False)])
        assert lines == ["", "  Total: 2/2 files parse", "  All clear."]

    def test_errors_listed_across_roots(self, tmp_path):
        reports = [
            RootReport(tmp_path / "a", ok=1, errors=[(tmp_path / "a" / "x.math", "bad")]),
            RootReport(tmp_path / "b", errors=[(tmp_path / "b" / "y.math", "worse")]),
        ]
        lines = summarize(reports)
        assert lines[1] == "  Total: 1/3 files parse"
        assert lines[3:] == [
            "  Errors:",
            f"    {tmp_path / 'a' / 'x.math'}: bad",
            f"    {tmp_path / 'b' / 'y.math'}: worse",
        ]


class TestMain:
    def test_success(self, project, capsys):
        main([str(project)])
        out = capsys.readouterr().out
        assert "OK" in out
        assert "3/3 files parse" in out
        assert "All clear." in out

    def test_failure_exits_nonzero(self, project, capsys):
        (project / "bad.math").write_text("\\System s {")
        with pytest.raises(SystemExit) as exc:
            main([str(project), "-v"])
        assert exc.value.code == 1
        out = capsys.readouterr().out
        assert "FAIL" in out
        assert "bad.math" in out

    def test_missing_root_is_skipped(self, project, capsys):
        main([str(project / "missing")])
        assert "SKIP" in capsys.readouterr().out

    def test_config_file_is_used(self, project, tmp_path, capsys):
        (project / "drafts").mkdir()
        (project / "drafts" / "wip.math").write_text("}")
        (tmp_path / "proofdoc.yaml").write_text("exclude:\n  - drafts/*\njobs: 2\n")
        main([str(project)])
        assert "All clear." in capsys.readouterr().out

    def test_bad_config(self, project, tmp_path, capsys):
        (tmp_path / "proofdoc.yaml").write_text("jobs: 0\n")
        with pytest.raises(SystemExit) as exc:
            main([str(project)])
        assert exc.value.code == 2

    def test_jobs_flag_validated(self, project):
        with pytest.raises(SystemExit):
            main([str(project), "--jobs", "0"])
