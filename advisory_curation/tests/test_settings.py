"""
Tests for configuration loading.
"""
import pytest

from matching.validator import REASON_UNTRUSTED_CPE
from matching import Match
from settings import DEFAULT_CONFIG, build_validator, load_config

from conftest import go_match


def test_defaults_when_no_file(tmp_path, monkeypatch):
    """Without an explicit path and no config.yaml, defaults apply."""
    monkeypatch.chdir(tmp_path)
    config = load_config()
    assert config == DEFAULT_CONFIG
    assert config is not DEFAULT_CONFIG


def test_explicit_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))


def test_sections_merge_over_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("matching:\n  trusted_cpe_sources: [syft-generated]\n")

    config = load_config(str(path))

    assert config["matching"]["trusted_cpe_sources"] == ["syft-generated"]
    assert config["matching"]["flagged_ecosystems"] == ["go-module"]
    assert config["export"]["default_format"] == "csv"


@pytest.mark.parametrize("content", [
    "bogus:\n  key: 1\n",
    "matching:\n  trusted_cpe_sources: wolfictl\n",
    "export:\n  default_format: json\n",
    "index:\n  max_workers: 0\n",
    "- just\n- a list\n",
])
def test_invalid_config(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content)

    with pytest.raises(ValueError):
        load_config(str(path))


def test_build_validator_uses_trust_tier(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("matching:\n  trusted_cpe_sources: [only-this-one]\n")

    validator = build_validator(load_config(str(path)))
    match = Match.from_dict(go_match(cpe_source="nvd-cpe-dictionary"))

    assert validator.accept(match) == (False, REASON_UNTRUSTED_CPE)
