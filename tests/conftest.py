"""Root test configuration for leakscan.

Provides a minimal PE image builder so engine tests can place payloads at known
offsets, and isolates every test from the developer's own config files and
LEAKSCAN_* environment variables.
"""

from __future__ import annotations

import struct
from typing import Callable, Iterator

import pytest
import structlog

from leakscan.utils.logger import configure_logging

PE_HEADER_SIZE = 0x80
PE_POINTER = 0x40
PAYLOAD_PADDING = 8


def build_pe(*payloads: bytes) -> bytes:
    """Return a buffer that passes ``is_valid_pe`` with each payload NUL-fenced.

    Every payload starts at an even offset so UTF-16LE payloads stay aligned.
    """
    header = bytearray(PE_HEADER_SIZE)
    header[0:2] = b"MZ"
    struct.pack_into("<I", header, 0x3C, PE_POINTER)
    header[PE_POINTER:PE_POINTER + 4] = b"PE\x00\x00"

    buf = bytearray(header)
    for payload in payloads:
        buf += b"\x00" * PAYLOAD_PADDING
        if len(buf) % 2:
            buf += b"\x00"
        buf += payload
    buf += b"\x00" * PAYLOAD_PADDING
    return bytes(buf)


@pytest.fixture
def make_pe() -> Callable[..., bytes]:
    """Factory fixture: ``make_pe(b"payload", ...)`` → valid PE bytes."""
    return build_pe


@pytest.fixture(autouse=True)
def isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> None:
    """Keep real ~/.leakscan and ./.leakscan config files and env vars out of tests."""
    monkeypatch.delenv("LEAKSCAN_CONFIG", raising=False)
    monkeypatch.delenv("LEAKSCAN_THREADS", raising=False)
    empty = tmp_path_factory.mktemp("no-config")
    monkeypatch.setattr(
        "leakscan.config.DEFAULT_CONFIG_PATHS",
        [str(empty / ".leakscan" / "config.yaml")],
    )


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Undo any logging configuration a test (or the CLI under test) applied."""
    yield
    structlog.reset_defaults()
    configure_logging()
