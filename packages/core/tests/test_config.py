"""Tests for configuration loading."""

from textreview_core.config import load_config, load_custom_instructions


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["model"] == "local-model"
    assert config["port"] == 8080
    assert config["threads"] == 2
    assert config["cooldown_seconds"] == 30
    assert config["custom_instruction_file"] is None
    assert config["exclude"] == [".venv/**", "**/.venv/**"]
    assert config["include"] == []
    assert config["auto_review"] is True
    assert config["auto_review_on_open"] is True


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".textreview.yml"
    cfg.write_text("model: gemma-3-12b\nport: 1234\nthreads: 4\n")
    config = load_config(config_path=str(cfg))
    assert config["model"] == "gemma-3-12b"
    assert config["port"] == 1234
    assert config["threads"] == 4


def test_patterns_loaded(tmp_path):
    cfg = tmp_path / ".textreview.yml"
    cfg.write_text("include:\n  - 'docs/**'\nexclude:\n  - 'drafts/**'\n")
    config = load_config(config_path=str(cfg))
    assert config["include"] == ["docs/**"]
    assert config["exclude"] == ["drafts/**"]


def test_null_pattern_list_means_empty(tmp_path):
    cfg = tmp_path / ".textreview.yml"
    cfg.write_text("exclude:\n")
    config = load_config(config_path=str(cfg))
    assert config["exclude"] == []


def test_empty_config_file(tmp_path):
    cfg = tmp_path / ".textreview.yml"
    cfg.write_text("")
    assert load_config(config_path=str(cfg))["port"] == 8080


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".textreview.yml"
    cfg.write_text("port: 1234\n")
    config = load_config(config_path=str(cfg), cli_overrides={"port": 9999})
    assert config["port"] == 9999


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".textreview.yml"
    cfg.write_text("model: gemma\n")
    config = load_config(config_path=str(cfg), cli_overrides={"model": None})
    assert config["model"] == "gemma"


def test_env_vars_override_file(tmp_path, monkeypatch):
    cfg = tmp_path / ".textreview.yml"
    cfg.write_text("port: 1234\nmodel: a\n")
    monkeypatch.setenv("TEXTREVIEW_PORT", "5555")
    monkeypatch.setenv("TEXTREVIEW_MODEL", "b")
    config = load_config(config_path=str(cfg))
    assert config["port"] == 5555
    assert config["model"] == "b"


def test_invalid_env_port_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("TEXTREVIEW_PORT", "not-a-port")
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["port"] == 8080


def test_pattern_lists_are_not_shared_references(tmp_path):
    """Mutating one config's pattern lists must not affect another."""
    config_a = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_b = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_a["exclude"].append("drafts/**")
    config_a["include"].append("*.md")
    assert config_b["exclude"] == [".venv/**", "**/.venv/**"]
    assert config_b["include"] == []


class TestCustomInstructions:
    def test_none_when_not_configured(self):
        assert load_custom_instructions({"custom_instruction_file": None}) is None

    def test_relative_path_resolved_against_root(self, tmp_path):
        (tmp_path / "rules.md").write_text("常体で書くこと", encoding="utf-8")
        config = {"custom_instruction_file": "rules.md"}
        assert load_custom_instructions(config, root=str(tmp_path)) == "常体で書くこと"

    def test_absolute_path(self, tmp_path):
        rules = tmp_path / "rules.md"
        rules.write_text("rule", encoding="utf-8")
        assert load_custom_instructions({"custom_instruction_file": str(rules)}, root="/elsewhere") == "rule"

    def test_missing_file_returns_none(self, tmp_path):
        config = {"custom_instruction_file": "does-not-exist.md"}
        assert load_custom_instructions(config, root=str(tmp_path)) is None


def test_invalid_numeric_values_fall_back_to_defaults(tmp_path):
    cfg = tmp_path / ".textreview.yml"
    cfg.write_text("port: abc\nthreads: 0\ncooldown_seconds: -5\n")
    config = load_config(config_path=str(cfg))
    assert config["port"] == 8080
    assert config["threads"] == 2
    assert config["cooldown_seconds"] == 30


def test_null_numeric_value_falls_back_to_default(tmp_path):
    cfg = tmp_path / ".textreview.yml"
    cfg.write_text("threads:\n")
    assert load_config(config_path=str(cfg))["threads"] == 2


def test_zero_cooldown_is_valid(tmp_path):
    cfg = tmp_path / ".textreview.yml"
    cfg.write_text("cooldown_seconds: 0\n")
    assert load_config(config_path=str(cfg))["cooldown_seconds"] == 0
