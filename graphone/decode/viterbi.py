"""Modified Viterbi search over the trained emission and transition graphs.

Every phoneme the emission graph allows for a grapheme is a branch. Branches
are expanded depth-first, one grapheme position per level:
- Position 0 starts each branch at the phoneme's prior probability (or the
  raw emission weight when the phoneme has no prior)
- Position i > 0 multiplies by the transition probability from the previous
  phoneme, pruning branches with no such transition

The search table is keyed by the full partial phoneme sequence, so branches
that share their last phoneme are not merged. The number of candidates can
grow exponentially with the input length.
"""

import logging
from typing import Dict, List, NamedTuple, Optional

from ..graph import WeightedDirectedGraph

logger = logging.getLogger(__name__)


def split_graphemes(grapheme_sequence: str,
                    separator: str = '-',
                    lowercase: bool = True) -> List[str]:
    """Split a grapheme sequence, dropping trailing empty graphemes.

    "c-a-" and "c-a" both give ["c", "a"].
    """
    if lowercase:
        grapheme_sequence = grapheme_sequence.lower()
    graphemes = grapheme_sequence.split(separator)
    while graphemes and not graphemes[-1]:
        graphemes.pop()
    return graphemes


class Candidate(NamedTuple):
    """Search table entry for one partial phoneme sequence."""
    index: int
    probability: float


class ViterbiDecoder:
    """Decodes grapheme sequences into their most probable phoneme sequence."""

    def __init__(self,
                 emission: WeightedDirectedGraph,
                 transitions: WeightedDirectedGraph,
                 prior: Dict[str, float],
                 separator: str = '-',
                 lowercase: bool = True):
        """Initialize decoder.

        Args:
            emission: Normalized grapheme -> phoneme graph
            transitions: Normalized phoneme -> phoneme graph
            prior: Phoneme prior distribution
            separator: Separates graphemes on input and phonemes on output
            lowercase: Lower-case input before lookup
        """
        self.emission = emission
        self.transitions = transitions
        self.prior = prior
        self.separator = separator
        self.lowercase = lowercase

    @classmethod
    def from_model(cls, model, config: Optional[Dict] = None) -> 'ViterbiDecoder':
        """Create a decoder over a trained G2PModel."""
        decoding = (config or {}).get('decoding', {})
        return cls(
            model.emission,
            model.transitions,
            model.phoneme_prior(),
            separator=decoding.get('separator', '-'),
            lowercase=decoding.get('lowercase', True),
        )

    def split(self, grapheme_sequence: str) -> List[str]:
        return split_graphemes(grapheme_sequence, self.separator, self.lowercase)

    def _initial_probability(self, grapheme: str, phone: str) -> float:
        if phone in self.prior:
            return self.prior[phone]
        return self.emission.get_edge_weight(grapheme, phone)

    def candidates(self, grapheme_sequence: str) -> Dict[str, Candidate]:
        """Build the search table for a grapheme sequence.

        Args:
            grapheme_sequence: Graphemes joined by the separator

        Returns:
            Dictionary mapping each partial phoneme sequence to the index of
            the last grapheme it covers and its cumulative probability
        """
        observations = self.split(grapheme_sequence)
        table: Dict[str, Candidate] = {}

        # (position, partial sequence, last phone, probability)
        stack = [(0, None, None, 1.0)]
        while stack:
            position, partial, last_phone, probability = stack.pop()
            if position >= len(observations):
                continue

            grapheme = observations[position]
            phones = self.emission.children_of(grapheme)
            if not phones:
                continue

            branches = []
            for phone in phones:
                if partial is None:
                    key = phone
                    next_probability = self._initial_probability(grapheme, phone)
                else:
                    transition = self.transitions.get_edge_weight(last_phone, phone)
                    if transition is None:
                        continue
                    next_probability = probability * transition
                    if not next_probability > 0:
                        continue
                    key = partial + self.separator + phone

                table[key] = Candidate(position, next_probability)
                branches.append((position + 1, key, phone, next_probability))

            # Reversed so siblings are expanded in iteration order.
            stack.extend(reversed(branches))

        return table

    def decode(self, grapheme_sequence: str) -> Optional[str]:
        """Decode a grapheme sequence.

        Picks the most probable sequence covering the last grapheme. If every
        branch was pruned before the end, falls back to the most probable one
        covering the second to last grapheme.

        Args:
            grapheme_sequence: Graphemes joined by the separator, e.g. "wh-a-t"

        Returns:
            Phonemes joined by the separator, or None if no sequence reaches
            either of the last two graphemes
        """
        table = self.candidates(grapheme_sequence)
        last_index = len(self.split(grapheme_sequence)) - 1

        result, max_prob = None, 0.0
        fallback, fallback_prob = None, 0.0
        for sequence, candidate in table.items():
            if candidate.index == last_index and candidate.probability > max_prob:
                result, max_prob = sequence, candidate.probability
            elif candidate.index == last_index - 1 and candidate.probability > fallback_prob:
                fallback, fallback_prob = sequence, candidate.probability

        if result is None and fallback is not None:
            logger.debug(f"No complete path for {grapheme_sequence!r}; using {fallback!r}")
        return result if result is not None else fallback
