from __future__ import annotations

import base64
import io
import os
from typing import BinaryIO

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

_BLOCK_SIZE_BITS = algorithms.AES.block_size
_IV_SIZE = _BLOCK_SIZE_BITS // 8
_READ_CHUNK_SIZE = 64 * 1024


class AesEncryptionSink:
    """AES-CBC encryption with PKCS7 padding.

    ``key`` and ``iv`` are base64 encoded. When no IV is given a random one is
    generated; read it back from ``secret`` or nothing written through this
    sink can be decrypted later.

    Appending to content written through a block cipher produces a stream
    that cannot be decrypted, so this sink must not be used with appends.
    """

    def __init__(self, key: str, iv: str | None = None) -> None:
        if not key:
            msg = "encryption key cannot be empty"
            raise ValueError(msg)
        self._key = base64.b64decode(key)
        if len(self._key) * 8 not in algorithms.AES.key_sizes:
            msg = f"invalid AES key length: {len(self._key)} bytes"
            raise ValueError(msg)

        self._iv = base64.b64decode(iv) if iv and iv.strip() else os.urandom(_IV_SIZE)
        if len(self._iv) != _IV_SIZE:
            msg = f"invalid AES IV length: {len(self._iv)} bytes, expected {_IV_SIZE}"
            raise ValueError(msg)

    @property
    def secret(self) -> str:
        """Base64 encoded IV in use."""
        return base64.b64encode(self._iv).decode("ascii")

    def _cipher(self) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(self._iv))

    def open_read_stream(self, full_path: str, parent: BinaryIO) -> BinaryIO:
        return _DecryptingReader(parent, self._cipher())

    def open_write_stream(self, full_path: str, parent: BinaryIO) -> BinaryIO:
        return _EncryptingWriter(parent, self._cipher())


class _EncryptingWriter(io.RawIOBase):
    """Encrypts written bytes into ``parent``. ``close`` writes the final padded block."""

    def __init__(self, parent: BinaryIO, cipher: Cipher) -> None:
        super().__init__()
        self._parent = parent
        self._encryptor = cipher.encryptor()
        self._padder = padding.PKCS7(_BLOCK_SIZE_BITS).padder()

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        if self.closed:
            msg = "write to closed stream"
            raise ValueError(msg)
        data = bytes(b)
        self._parent.write(self._encryptor.update(self._padder.update(data)))
        return len(data)

    def close(self) -> None:
        if not self.closed:
            tail = self._padder.finalize()
            self._parent.write(self._encryptor.update(tail) + self._encryptor.finalize())
        super().close()


class _DecryptingReader(io.RawIOBase):
    """Decrypts bytes read from ``parent`` on demand."""

    def __init__(self, parent: BinaryIO, cipher: Cipher) -> None:
        super().__init__()
        self._parent = parent
        self._decryptor = cipher.decryptor()
        self._unpadder = padding.PKCS7(_BLOCK_SIZE_BITS).unpadder()
        self._buffer = bytearray()
        self._eof = False

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        while not self._buffer and not self._eof:
            self._fill()

        size = min(len(b), len(self._buffer))
        b[:size] = self._buffer[:size]
        del self._buffer[:size]
        return size

    def _fill(self) -> None:
        chunk = self._parent.read(_READ_CHUNK_SIZE)
        if chunk:
            self._buffer += self._unpadder.update(self._decryptor.update(chunk))
            return
        self._buffer += self._unpadder.update(self._decryptor.finalize())
        self._buffer += self._unpadder.finalize()
        self._eof = True

    def close(self) -> None:
        if not self.closed:
            self._parent.close()
        super().close()
