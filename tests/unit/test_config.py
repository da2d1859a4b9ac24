"""Unit tests for Configuration precedence (CLI > env > file > defaults)."""

import os
import logging
import json
import pytest
from pathlib import Path
from tempfile import TemporaryDirectory
from cdpcookies.config import Configuration


@pytest.fixture(autouse=True)
def clean_env():
    """Keep CDP_COOKIES_* variables from leaking between tests."""
    saved = {k: v for k, v in os.environ.items() if k.startswith("CDP_COOKIES_")}
    for key in saved:
        os.environ.pop(key)
    yield
    for key in [k for k in os.environ if k.startswith("CDP_COOKIES_")]:
        os.environ.pop(key)
    os.environ.update(saved)


@pytest.mark.unit
class TestConfigurationPrecedence:

    def test_default_values(self):
        config = Configuration()

        assert config.chrome_host == "localhost"
        assert config.chrome_port is None
        assert config.timeout == 30.0
        assert config.max_size == 2_097_152  # 2MB
        assert config.log_level == "WARNING"
        assert config.log_format == "text"

    def test_load_from_file(self):
        with TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / ".cdpcookiesrc"
            config_data = {"chrome_port": 9333, "timeout": 60.0, "log_level": "DEBUG"}
            config_file.write_text(json.dumps(config_data))

            config = Configuration()
            config.load_from_file(str(config_file))

            assert config.chrome_port == 9333
            assert config.timeout == 60.0
            assert config.log_level == "DEBUG"
            # Defaults still apply for unset values
            assert config.max_size == 2_097_152

    def test_load_from_env(self):
        os.environ["CDP_COOKIES_PORT"] = "9444"
        os.environ["CDP_COOKIES_HOST"] = "127.0.0.1"
        os.environ["CDP_COOKIES_TIMEOUT"] = "45.0"

        config = Configuration()
        config.load_from_env()

        assert config.chrome_port == 9444
        assert config.chrome_host == "127.0.0.1"
        assert config.timeout == 45.0
        assert config.max_size == 2_097_152

    def test_precedence_chain_file_env_cli(self):
        with TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / ".cdpcookiesrc"
            config_file.write_text(json.dumps({"chrome_port": 9333, "timeout": 60.0}))

            os.environ["CDP_COOKIES_PORT"] = "9444"
            os.environ["CDP_COOKIES_LOG_LEVEL"] = "DEBUG"

            config = Configuration()
            config.load_from_file(str(config_file))
            config.load_from_env()
            config.merge(timeout=15.0)

            assert config.chrome_port == 9444  # Env wins over file
            assert config.timeout == 15.0  # CLI wins over file
            assert config.log_level == "DEBUG"  # Env wins (no CLI override)
            assert config.max_size == 2_097_152

    def test_merge_ignores_none_and_unknown_keys(self):
        config = Configuration()
        config.merge(chrome_port=None, timeout=5.0, bogus="x")

        assert config.chrome_port is None
        assert config.timeout == 5.0
        assert not hasattr(config, "bogus")

    def test_invalid_config_file_graceful_fallback(self):
        with TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / ".cdpcookiesrc"
            config_file.write_text("INVALID JSON{{{")

            config = Configuration()
            config.load_from_file(str(config_file))

            assert config.chrome_port is None
            assert config.timeout == 30.0

    def test_non_object_config_file_ignored(self):
        with TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / ".cdpcookiesrc"
            config_file.write_text("[9222]")

            config = Configuration()
            config.load_from_file(str(config_file))

            assert config.chrome_port is None

    def test_nonexistent_config_file_ignored(self):
        config = Configuration()
        config.load_from_file("/nonexistent/path/.cdpcookiesrc")

        assert config.to_dict() == Configuration.DEFAULTS


@pytest.mark.unit
class TestConfigurationTypes:

    def test_type_conversion_from_env(self):
        os.environ["CDP_COOKIES_PORT"] = "9333"
        os.environ["CDP_COOKIES_TIMEOUT"] = "45.5"

        config = Configuration()
        config.load_from_env()

        assert isinstance(config.chrome_port, int)
        assert isinstance(config.timeout, float)
        assert config.timeout == 45.5

    def test_type_conversion_from_file(self):
        with TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / ".cdpcookiesrc"
            config_file.write_text(json.dumps({"chrome_port": "9222", "timeout": 5}))

            config = Configuration()
            config.load_from_file(str(config_file))

            assert config.chrome_port == 9222
            assert isinstance(config.timeout, float)

    def test_invalid_file_value_ignored(self, caplog):
        caplog.set_level(logging.WARNING, logger="cdpcookies.config")
        with TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / ".cdpcookiesrc"
            config_file.write_text(
                json.dumps({"chrome_port": "abc", "chrome_host": 42, "timeout": 9.5})
            )

            config = Configuration()
            config.load_from_file(str(config_file))

            assert config.chrome_port is None
            assert config.chrome_host == "localhost"
            assert config.timeout == 9.5
            assert "Invalid value for chrome_port" in caplog.text

    def test_invalid_env_var_ignored(self):
        os.environ["CDP_COOKIES_PORT"] = "not_a_number"

        config = Configuration()
        config.load_from_env()

        assert config.chrome_port is None
