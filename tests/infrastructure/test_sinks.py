"""Tests for the gzip and AES sinks."""

from __future__ import annotations

import base64
import io

import pytest

from infrastructure.sinks.encryption_sink import AesEncryptionSink
from infrastructure.sinks.gzip_sink import GZipSink


def _write_through(sink, data: bytes) -> tuple[bytes, io.BytesIO]:
    parent = io.BytesIO()
    stream = sink.open_write_stream("/f", parent)
    stream.write(data)
    stream.close()
    return parent.getvalue(), parent


class TestGZipSink:
    """Test GZipSink."""

    def test_close_keeps_parent_open(self) -> None:
        """Test close keeps parent open."""
        _, parent = _write_through(GZipSink(), b"abc")
        assert not parent.closed

    def test_round_trip(self) -> None:
        """Test round trip."""
        stored, _ = _write_through(GZipSink(compresslevel=1), b"abc" * 100)

        reader = GZipSink().open_read_stream("/f", io.BytesIO(stored))

        assert reader.read() == b"abc" * 100

    def test_closing_reader_closes_parent(self) -> None:
        """Test closing reader closes parent."""
        stored, _ = _write_through(GZipSink(), b"hello")
        parent = io.BytesIO(stored)

        reader = GZipSink().open_read_stream("/f", parent)
        assert reader.read() == b"hello"
        reader.close()

        assert parent.closed

    def test_invalid_level(self) -> None:
        """Test invalid level."""
        with pytest.raises(ValueError, match="compresslevel"):
            GZipSink(compresslevel=10)


class TestAesEncryptionSink:
    """Test AesEncryptionSink."""

    @pytest.mark.parametrize("size", [0, 1, 15, 16, 17, 100_000])
    def test_round_trip(self, aes_key: str, aes_iv: str, size: int) -> None:
        """Test round trip."""
        data = bytes(i % 251 for i in range(size))
        sink = AesEncryptionSink(aes_key, aes_iv)

        stored, parent = _write_through(sink, data)

        assert not parent.closed
        assert len(stored) == (size // 16 + 1) * 16
        assert sink.open_read_stream("/f", io.BytesIO(stored)).read() == data

    def test_small_reads(self, aes_key: str, aes_iv: str) -> None:
        """Test small reads."""
        sink = AesEncryptionSink(aes_key, aes_iv)
        stored, _ = _write_through(sink, b"0123456789" * 5)
        reader = sink.open_read_stream("/f", io.BytesIO(stored))

        chunks = []
        while chunk := reader.read(7):
            chunks.append(chunk)

        assert b"".join(chunks) == b"0123456789" * 5

    def test_same_key_and_iv_decrypts_across_instances(self, aes_key: str, aes_iv: str) -> None:
        """Test same key and IV decrypts across instances."""
        stored, _ = _write_through(AesEncryptionSink(aes_key, aes_iv), b"shared")

        reader = AesEncryptionSink(aes_key, aes_iv).open_read_stream("/f", io.BytesIO(stored))

        assert reader.read() == b"shared"

    def test_generated_iv_is_exposed(self, aes_key: str) -> None:
        """Test generated IV is exposed."""
        sink = AesEncryptionSink(aes_key)
        stored, _ = _write_through(sink, b"secret data")

        restored = AesEncryptionSink(aes_key, sink.secret)

        assert len(base64.b64decode(sink.secret)) == 16
        assert restored.open_read_stream("/f", io.BytesIO(stored)).read() == b"secret data"

    def test_ciphertext_differs_from_plaintext(self, aes_key: str, aes_iv: str) -> None:
        """Test ciphertext differs from plaintext."""
        stored, _ = _write_through(AesEncryptionSink(aes_key, aes_iv), b"A" * 64)
        assert b"A" * 16 not in stored

    def test_invalid_key(self) -> None:
        """Test invalid key."""
        with pytest.raises(ValueError, match="key"):
            AesEncryptionSink(base64.b64encode(b"short").decode())
        with pytest.raises(ValueError, match="empty"):
            AesEncryptionSink("")

    def test_invalid_iv(self, aes_key: str) -> None:
        """Test invalid IV."""
        with pytest.raises(ValueError, match="IV"):
            AesEncryptionSink(aes_key, base64.b64encode(b"1234").decode())
