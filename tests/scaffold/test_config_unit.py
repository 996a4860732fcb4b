"""Unit tests for scaffold settings."""

import pytest
from pydantic import ValidationError

from src.scaffold.config import DEFAULT_TEMPLATE_URL, ScaffoldSettings, get_settings


class TestDefaults:

    def test_defaults_without_environment(self):
        settings = get_settings()
        assert settings.template_url == DEFAULT_TEMPLATE_URL
        assert settings.git_executable == "git"
        assert settings.install_command == "yarn install"
        assert settings.metadata_filename == "package.json"
        assert settings.cleanup_on_failure is True
        assert settings.strict_install is False
        assert settings.log_level == "WARNING"
        assert settings.log_json is False

    def test_install_argv_splits_command(self):
        settings = ScaffoldSettings(install_command="npm install --no-audit")
        assert settings.install_argv == ["npm", "install", "--no-audit"]

    def test_install_argv_respects_quotes(self):
        settings = ScaffoldSettings(install_command='pnpm install --filter "my app"')
        assert settings.install_argv == ["pnpm", "install", "--filter", "my app"]


class TestEnvironmentOverrides:

    def test_reads_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("SCAFFOLD_TEMPLATE_URL", "https://example.com/t.git")
        monkeypatch.setenv("SCAFFOLD_STRICT_INSTALL", "true")
        monkeypatch.setenv("SCAFFOLD_INSTALL_TIMEOUT_SECONDS", "30")
        monkeypatch.setenv("SCAFFOLD_LOG_LEVEL", "debug")
        settings = get_settings()
        assert settings.template_url == "https://example.com/t.git"
        assert settings.strict_install is True
        assert settings.install_timeout_seconds == 30
        assert settings.log_level == "DEBUG"

    def test_unprefixed_variables_are_ignored(self, monkeypatch):
        monkeypatch.setenv("TEMPLATE_URL", "https://example.com/other.git")
        assert get_settings().template_url == DEFAULT_TEMPLATE_URL


class TestValidation:

    @pytest.mark.parametrize("field", ["template_url", "git_executable", "metadata_filename"])
    def test_blank_strings_rejected(self, field):
        with pytest.raises(ValidationError):
            ScaffoldSettings(**{field: "   "})

    def test_metadata_filename_must_be_bare(self):
        with pytest.raises(ValidationError, match="bare file name"):
            ScaffoldSettings(metadata_filename="config/package.json")

    def test_empty_install_command_rejected(self):
        with pytest.raises(ValidationError, match="install_command"):
            ScaffoldSettings(install_command="   ")

    def test_unbalanced_quotes_rejected(self):
        with pytest.raises(ValidationError, match="cannot be parsed"):
            ScaffoldSettings(install_command='yarn "install')

    @pytest.mark.parametrize("field", ["clone_timeout_seconds", "install_timeout_seconds"])
    def test_non_positive_timeouts_rejected(self, field):
        with pytest.raises(ValidationError, match="at least 1 second"):
            ScaffoldSettings(**{field: 0})

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError, match="unknown log level"):
            ScaffoldSettings(log_level="LOUD")
