"""Pytest configuration and shared fixtures for torrentize tests."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from torrentize.config.config import ENV_MAPPINGS, reset_config


def pytest_configure(config):
    """Register all project markers to avoid warnings when ini isn't loaded."""
    markers = [
        ("unit", "marks tests as unit tests"),
        ("core", "marks tests as core functionality tests"),
        ("piece", "marks tests as piece hashing tests"),
        ("cli", "marks tests as CLI tests"),
        ("config", "marks tests as configuration tests"),
        ("integration", "marks tests as integration tests"),
        ("property", "marks tests as property-based tests"),
    ]
    for name, desc in markers:
        config.addinivalue_line("markers", f"{name}: {desc}")


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch, tmp_path_factory):
    """Keep user config files and TORRENTIZE_* variables out of tests.

    The working directory and home directory point at an empty temporary
    directory, so the config file lookup finds nothing unless a test puts
    a file there.
    """
    for env_name in ENV_MAPPINGS:
        monkeypatch.delenv(env_name, raising=False)
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(home)
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def cleanup_logging():
    """Clean up logging handlers after each test to prevent closed file errors."""
    yield
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    # setup_logging detaches the package tree; caplog listens on the root
    package_logger = logging.getLogger("torrentize")
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)


@pytest.fixture
def make_tree(tmp_path):
    """Create files below ``tmp_path / "root"`` from a {relative path: bytes} map."""

    def _make(files: dict[str, bytes], root_name: str = "root"):
        root = tmp_path / root_name
        root.mkdir(parents=True, exist_ok=True)
        for relative, data in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        return root

    return _make


@pytest.fixture
def can_symlink(tmp_path):
    """Skip the test where symbolic links cannot be created."""
    link = tmp_path / "symlink-check"
    try:
        os.symlink(tmp_path, link)
    except (OSError, NotImplementedError):
        pytest.skip("symbolic links not supported")
    link.unlink()


@pytest.fixture
def write_raw_name():
    """Create a file (or, with ``data=None``, a directory) named by raw bytes.

    Returns the path as ``os.fsdecode`` presents it, so names that are not
    valid UTF-8 carry surrogate escapes.
    """
    if os.name == "nt":
        pytest.skip("byte file names are a POSIX feature")

    def _write(parent, raw_name: bytes, data: bytes | None = b""):
        target = os.path.join(os.fsencode(parent), raw_name)
        try:
            if data is None:
                os.mkdir(target)
            else:
                with open(target, "wb") as f:
                    f.write(data)
        except OSError:
            pytest.skip("filesystem rejects non-UTF-8 names")
        return Path(os.fsdecode(target))

    return _write
