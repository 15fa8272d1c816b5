import io

import pytest

from key_issuer import FixedRandomSource, KeyIssuer
from output_sinks import MemorySink
from tests.common import KEY_ONE


@pytest.fixture
def memory_sink():
    return MemorySink()


@pytest.fixture
def out_stream():
    return io.StringIO()


@pytest.fixture
def make_issuer(memory_sink, out_stream):
    """Build a KeyIssuer wired to a fixed entropy sequence and in-memory outputs."""
    def _make(chunks=(KEY_ONE,), **kwargs):
        kwargs.setdefault("sink", memory_sink)
        kwargs.setdefault("stream", out_stream)
        kwargs.setdefault("allow_secret_output", True)
        return KeyIssuer(random_source=FixedRandomSource(chunks), **kwargs)
    return _make


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove every variable that changes issuer behaviour and run from an empty directory."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "CI",
        "GITHUB_OUTPUT",
        "KEY_ISSUER_SINK",
        "KEY_ISSUER_ALLOW_SECRET_OUTPUT",
        "KEY_ISSUER_MASK",
        "KEY_ISSUER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
