"""Greedy baseline decoder.

Maps each grapheme to its most probable phoneme, ignoring transitions.
"""

from typing import Dict, List, Optional

import numpy as np

from ..graph import WeightedDirectedGraph
from .viterbi import split_graphemes


class BaselineDecoder:
    """Per-grapheme arg-max over emission probabilities."""

    def __init__(self,
                 emission: WeightedDirectedGraph,
                 separator: str = '-',
                 lowercase: bool = True):
        """Initialize decoder.

        Args:
            emission: Normalized grapheme -> phoneme graph
            separator: Separates graphemes on input and phonemes on output
            lowercase: Lower-case input before lookup
        """
        self.emission = emission
        self.separator = separator
        self.lowercase = lowercase

    @classmethod
    def from_model(cls, model, config: Optional[Dict] = None) -> 'BaselineDecoder':
        """Create a decoder over a trained G2PModel."""
        decoding = (config or {}).get('decoding', {})
        return cls(
            model.emission,
            separator=decoding.get('separator', '-'),
            lowercase=decoding.get('lowercase', True),
        )

    def most_probable_phone(self, grapheme: str) -> Optional[str]:
        """Get the phoneme with the highest emission weight.

        Ties go to whichever phoneme the graph yields first; that order is
        unspecified.

        Returns:
            The phoneme, or None if the grapheme emits nothing
        """
        children = self.emission.children_of(grapheme)
        if not children:
            return None
        phones = list(children)
        weights = np.fromiter(
            (self.emission.get_edge_weight(grapheme, p) for p in phones),
            dtype=float, count=len(phones)
        )
        best = int(np.argmax(weights))
        if not weights[best] > 0:
            return None
        return phones[best]

    def decode(self, grapheme_sequence: str) -> Optional[str]:
        """Decode a grapheme sequence greedily.

        Args:
            grapheme_sequence: Graphemes joined by the separator

        Returns:
            Phonemes joined by the separator (silent graphemes give empty
            tokens), or None if the input is empty or any grapheme has no
            phonemes
        """
        graphemes = split_graphemes(grapheme_sequence, self.separator, self.lowercase)
        if not graphemes:
            return None

        phones: List[str] = []
        for grapheme in graphemes:
            phone = self.most_probable_phone(grapheme)
            if phone is None:
                return None
            phones.append(phone)
        return self.separator.join(phones)
