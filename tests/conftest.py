"""Root test configuration: isolate tests from MDSTREAM_* environment and config.yaml"""

import os

import pytest


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Clear MDSTREAM_* env vars and run each test from an empty directory."""
    for name in list(os.environ):
        if name.startswith("MDSTREAM_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
