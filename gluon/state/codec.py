"""
Register codec boundary.

The ledger stores register values in its own serialized constant format. The
engine never parses those bytes itself: it goes through a `ChainCodec`, which
callers back with the ledger's client library. Tests use an in-memory double.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence, Tuple


class ChainCodec(Protocol):
    """Encodes and decodes register constants (hex strings)."""

    def decode_long(self, encoded: str) -> int: ...

    def decode_long_coll(self, encoded: str) -> List[int]: ...

    def decode_long_pair(self, encoded: str) -> Tuple[int, int]: ...

    def decode_byte_coll(self, encoded: str) -> bytes: ...

    def encode_long(self, value: int) -> str: ...

    def encode_long_coll(self, values: Sequence[int]) -> str: ...

    def encode_long_pair(self, first: int, second: int) -> str: ...

    def script_to_address(self, script: str) -> str:
        """Resolve a spending-script commitment (hex) to a human-readable address."""
        ...
