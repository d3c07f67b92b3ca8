"""Tests for proofdoc.yaml loading."""

from pathlib import Path

import pytest

from proofdoc.config import CheckConfig, ConfigError, find_config, load_config


class TestLoadConfig:
    def test_defaults(self):
        config = load_config(None)
        assert config.extension == ".math"
        assert config.manifest_name == "manifest.math"
        assert config.bibliography_name == "bib.math"
        assert config.exclude == []
        assert config.jobs == 1

    def test_values_from_file(self, tmp_path):
        path = tmp_path / "proofdoc.yaml"
        path.write_text("jobs: 4\nexclude:\n  - drafts/*\n")
        config = load_config(path)
        assert config.jobs == 4
        assert config.exclude == ["drafts/*"]
        assert config.extension == ".math"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "proofdoc.yaml"
        path.write_text("")
        assert load_config(path) == CheckConfig()

    @pytest.mark.parametrize(
        "text",
        [
            "jobs: 0\n",
            "colour: blue\n",
            "- a\n- b\n",
            "jobs: [unclosed\n",
        ],
    )
    def test_invalid(self, tmp_path, text):
        path = tmp_path / "proofdoc.yaml"
        path.write_text(text)
        with pytest.raises(ConfigError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "nope.yaml")


class TestFindConfig:
    def test_walks_up(self, tmp_path):
        (tmp_path / "proofdoc.yaml").write_text("jobs: 2\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config(nested) == (tmp_path / "proofdoc.yaml").resolve()

    def test_none_when_absent(self, tmp_path):
        nested = tmp_path / "x"
        nested.mkdir()
        found = find_config(nested)
        assert found is None or tmp_path.resolve() not in found.parents


class TestExclude:
    def test_glob_matches_nested_paths(self, tmp_path):
        config = CheckConfig(exclude=["drafts/*"])
        assert config.is_excluded(tmp_path / "drafts" / "deep" / "a.math", tmp_path)
        assert not config.is_excluded(tmp_path / "book" / "a.math", tmp_path)

    def test_no_patterns(self, tmp_path):
        assert not CheckConfig().is_excluded(Path(tmp_path / "a.math"), tmp_path)
