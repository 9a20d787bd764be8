"""Decoders for grapheme-to-phoneme conversion.

Both decoders expose decode(grapheme_sequence) -> Optional[str]:
- ViterbiDecoder: emission + transition search with prior initialization
- BaselineDecoder: greedy per-grapheme emission arg-max
"""

from typing import Optional, Protocol

from .viterbi import ViterbiDecoder, Candidate
from .baseline import BaselineDecoder


class Decoder(Protocol):
    def decode(self, grapheme_sequence: str) -> Optional[str]:
        ...


__all__ = [
    "Decoder",
    "ViterbiDecoder",
    "Candidate",
    "BaselineDecoder",
]
