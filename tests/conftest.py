"""Shared test fixtures and configuration."""

import os

import pytest


# Complete test environment that overrides every config value
TEST_ENV = {
    "BASE_URL": "https://ports.example.org",
    "PORTS_URL": "",
    "HTTP_TIMEOUT": "5",
    "PRELOAD_INDEX": "false",
    "MAX_RESULTS": "100",
    "SEARCH_DEBOUNCE_MS": "300",
    "FREE_TEXT_FIELDS": "name,description,category",
    "HOST": "127.0.0.1",
    "PORT": "1313",
    "OPERATION_MODE": "online",
    "LOG_LEVEL": "info",
    "LOG_JSON": "true",
    "LOGGER_LEVELS": "{}",
    "ACCESS_LOG": "false",
    # Proxy settings - ensure they're cleared for tests
    "http_proxy": "",
    "https_proxy": "",
    "all_proxy": "",
    "no_proxy": "",
}

for key, value in TEST_ENV.items():
    os.environ[key] = value

from ports_search.domain.model import Catalog, Port  # noqa: E402


DAY = 24 * 60 * 60
NOW = 1_760_000_000


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Pin every setting before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def now() -> int:
    return NOW


@pytest.fixture
def make_port():
    """Factory for ports with sensible defaults; keyword overrides use attribute names."""

    def _make(name: str = "vim", **overrides) -> Port:
        data = {
            "name": name,
            "category": "editors",
            "version": "1.0",
            "description": f"{name} package",
            "last_updated": NOW,
        }
        data.update(overrides)
        return Port(**data)

    return _make


@pytest.fixture
def sample_records() -> list[dict]:
    """Catalog entries as written to ports.json (compact keys)."""
    return [
        {
            "n": "vim",
            "c": "editors",
            "d": "Vi IMproved text editor",
            "v": "9.1",
            "l": "Vim",
            "a": "Bram",
            "pds": ["/usr/bin/vim", "/usr/share/vim/vimrc"],
            "dps": ["ncurses", "acl"],
            "dt": NOW - 2 * DAY,
            "st": "success",
        },
        {
            "n": "nano",
            "c": "editors",
            "d": "Simple console text editor",
            "v": "7.2",
            "l": "GPL-3.0",
            "pds": ["/usr/bin/nano"],
            "dps": ["ncurses"],
            "br": True,
            "dt": NOW - 1000 * DAY,
            "st": "failed",
        },
        {
            "n": "libpng",
            "c": "libs",
            "d": "PNG reference library",
            "v": "1.6.43",
            "l": "libpng-2.0",
            "a": "Glenn",
            "pds": ["/usr/lib/libpng16.so"],
            "dps": ["zlib"],
            "dt": NOW - 20 * DAY,
        },
        {
            "n": "mylib",
            "c": "libs",
            "d": "Example helper library",
            "v": "0.3",
            "un": True,
            "dt": NOW - 45 * DAY,
        },
        {
            "n": "zlib",
            "c": "libs",
            "d": "Compression library",
            "v": "1.3.1",
            "l": "Zlib",
        },
    ]


@pytest.fixture
def catalog(sample_records) -> Catalog:
    return Catalog.from_records(sample_records)
