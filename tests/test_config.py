"""
Tests for configuration and command line handling

Run with: python -m pytest tests/test_config.py -v
"""

import pytest

from kvpserver.config.settings import DEFAULT_PORT, resolve_port, settings
from kvpserver.registry.store import UpdatePolicy
from kvpserver.server import build_store, parse_args


class TestResolvePort:
    """Test the port fallback rules."""

    @pytest.mark.parametrize("value", [1024, 5555, 8080, 65535, "8080"])
    def test_valid_ports(self, value):
        assert resolve_port(value) == int(value)

    @pytest.mark.parametrize("value", [0, 80, 1023, 65536, -1, "abc", "", None])
    def test_fallback_to_default(self, value):
        assert resolve_port(value) == DEFAULT_PORT

    def test_hex_port(self):
        """Test base prefixes are understood like strtol with base 0."""
        assert resolve_port("0x1F90") == 8080


class TestSettings:
    """Test default settings."""

    def test_limits(self):
        assert settings.MAX_KEY_LENGTH == 16
        assert settings.MAX_VALUE_LENGTH == 32
        assert settings.READ_BUFFER_SIZE == 256


class TestParseArgs:
    """Test command line flags."""

    def test_defaults(self):
        args = parse_args([])
        assert args.port == settings.PORT
        assert args.registry_file == settings.REGISTRY_FILE
        assert args.strict == settings.STRICT

    def test_port_flag(self):
        assert parse_args(["-p", "6000"]).port == 6000

    def test_out_of_range_port_falls_back(self):
        assert parse_args(["-p", "80"]).port == DEFAULT_PORT
        assert parse_args(["--port", "70000"]).port == DEFAULT_PORT

    def test_file_flag(self):
        assert parse_args(["-f", "other.txt"]).registry_file == "other.txt"

    def test_strict_flag(self):
        assert parse_args(["--strict"]).strict is True


class TestBuildStore:
    """Test building the registry at startup."""

    def test_policy_follows_strict_flag(self, registry_file):
        assert build_store(registry_file, strict=True).policy is UpdatePolicy.REJECT_DUPLICATE
        assert build_store(registry_file, strict=False).policy is UpdatePolicy.ALLOW_OVERWRITE

    def test_loads_registry(self, registry_file):
        assert build_store(registry_file, strict=False).size() == 3
