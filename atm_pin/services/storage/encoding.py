"""
Reversible Line Encoding

Each line of the account file is XORed byte by byte with a repeating
key before it is written, and XORed again after it is read.

This is NOT encryption. Anyone with the key (which ships in the
default configuration) can read the file. It exists so existing
account files stay readable, nothing more.
"""

from typing import Optional

from atm_pin.config import get_settings


# Stored lines are split on this byte only
LINE_BREAK = ord("\n")


class ReversibleEncoding:
    """Repeating-key XOR over bytes. `encode` is its own inverse."""

    def __init__(self, key: Optional[str] = None):
        key = key if key is not None else get_settings().store.encoding_key
        if not key:
            raise ValueError("Encoding key cannot be empty")
        self._key = key.encode("utf-8")

    def encode(self, data: bytes) -> bytes:
        key = self._key
        size = len(key)
        return bytes(b ^ key[i % size] for i, b in enumerate(data))

    def decode(self, data: bytes) -> bytes:
        return self.encode(data)

    def encode_line(self, line: str) -> bytes:
        return self.encode(line.encode("utf-8"))

    def decode_line(self, data: bytes) -> str:
        """
        Raises:
            UnicodeDecodeError: if the decoded bytes are not UTF-8
        """
        return self.decode(data).decode("utf-8")

    def fits_on_one_line(self, line: str) -> bool:
        """True if the encoded form of line contains no newline byte."""
        return LINE_BREAK not in self.encode_line(line)
