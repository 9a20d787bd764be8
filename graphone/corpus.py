"""Corpus parsing and model training.

Reads an aligned pronunciation corpus and builds:
1. Emission graph: grapheme -> phoneme counts, normalized to P(phoneme | grapheme)
2. Transition graph: phoneme -> phoneme counts, normalized to P(next | previous)
3. Grapheme and phoneme unigram counts

Corpus records look like

    wh-a-t w 0 ah 1 t 2 //

where the first token is the word split into graphemes by hyphens and the
rest alternates phone and the index of the grapheme that emitted it.
Lines without a space are headers and are skipped; a line holding only the
terminator (BREAK!) ends the corpus.
"""

import logging
from collections import defaultdict
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple

from tqdm import tqdm

from .config import get_config
from .errors import InvalidStateError, MalformedRecordError
from .graph import WeightedDirectedGraph

logger = logging.getLogger(__name__)

SILENT_PHONE = ""


class AlignmentRecord(NamedTuple):
    """One parsed corpus line."""
    word: str
    graphemes: Tuple[str, ...]
    alignments: Tuple[Tuple[str, int], ...]


def is_header(line: str) -> bool:
    """Header lines list the phone inventory and carry no space."""
    return ' ' not in line


def parse_alignments(tokens: List[str],
                     num_graphemes: int,
                     end_of_phones: str = '//',
                     lowercase: bool = True,
                     line: Optional[str] = None,
                     line_number: Optional[int] = None) -> Tuple[Tuple[str, int], ...]:
    """Parse alternating phone/index tokens into (phone, index) pairs.

    Args:
        tokens: Tokens following the word
        num_graphemes: Number of graphemes in the word
        end_of_phones: Token that stops the phone list early
        lowercase: Lower-case the phones
        line: Original line, attached to errors
        line_number: Line number, attached to errors

    Returns:
        Tuple of (phone, grapheme index) pairs

    Raises:
        MalformedRecordError: On a missing or non-numeric index, or an index
            outside the word's graphemes
    """
    pairs = []
    for i in range(0, len(tokens), 2):
        phone = tokens[i]
        if phone == end_of_phones:
            break
        if i + 1 >= len(tokens):
            raise MalformedRecordError(
                f"phone {phone!r} has no grapheme index", line, line_number
            )
        try:
            index = int(tokens[i + 1])
        except ValueError:
            raise MalformedRecordError(
                f"grapheme index {tokens[i + 1]!r} is not an integer", line, line_number
            ) from None
        if not 0 <= index < num_graphemes:
            raise MalformedRecordError(
                f"grapheme index {index} out of range for {num_graphemes} graphemes",
                line, line_number
            )
        pairs.append((phone.lower() if lowercase else phone, index))
    return tuple(pairs)


def parse_record(line: str,
                 config: Optional[Dict[str, Any]] = None,
                 line_number: Optional[int] = None) -> AlignmentRecord:
    """Parse one alignment record.

    Args:
        line: Record of the form "WORD PHONE_1 IDX_1 ... PHONE_N IDX_N [//]"
        config: Configuration dict
        line_number: Line number, attached to errors

    Returns:
        Parsed AlignmentRecord

    Raises:
        MalformedRecordError: If the line does not match the record grammar
    """
    corpus_config = (config or get_config())['corpus']
    tokens = line.split()
    if not tokens:
        raise MalformedRecordError("empty record", line, line_number)

    word = tokens[0]
    if corpus_config['lowercase']:
        word = word.lower()
    graphemes = tuple(word.split(corpus_config['grapheme_separator']))

    alignments = parse_alignments(
        tokens[1:],
        len(graphemes),
        end_of_phones=corpus_config['end_of_phones'],
        lowercase=corpus_config['lowercase'],
        line=line,
        line_number=line_number,
    )
    return AlignmentRecord(word, graphemes, alignments)


class G2PModel:
    """Trained grapheme-to-phoneme model.

    Holds the normalized emission and transition graphs and the raw unigram
    counts. The counts are exposed as read-only mappings. The graphs are
    read-only by convention: nothing in the package mutates them after
    build(), so decoders can share one model.
    """

    def __init__(self,
                 emission: WeightedDirectedGraph,
                 transitions: WeightedDirectedGraph,
                 grapheme_counts: Dict[str, float],
                 phoneme_counts: Dict[str, float]):
        self.emission = emission
        self.transitions = transitions
        self.grapheme_counts: Mapping[str, float] = MappingProxyType(dict(grapheme_counts))
        self.phoneme_counts: Mapping[str, float] = MappingProxyType(dict(phoneme_counts))
        self._prior: Optional[Dict[str, float]] = None

    def phoneme_prior(self) -> Dict[str, float]:
        """Get P(phoneme): each phoneme count divided by the total count.

        Returns:
            Dictionary mapping phoneme to prior probability
        """
        if self._prior is None:
            total = sum(self.phoneme_counts.values())
            if total > 0:
                self._prior = {p: count / total for p, count in self.phoneme_counts.items()}
            else:
                self._prior = {}
        return dict(self._prior)

    def graphemes(self) -> List[str]:
        """Sorted grapheme vocabulary."""
        return sorted(self.grapheme_counts)

    def summary(self) -> Dict[str, int]:
        return {
            'graphemes': len(self.grapheme_counts),
            'phonemes': len(self.phoneme_counts),
            'emission_nodes': len(self.emission),
            'emission_edges': self.emission.num_edges(),
            'transition_nodes': len(self.transitions),
            'transition_edges': self.transitions.num_edges(),
        }


class CorpusModelBuilder:
    """Accumulates corpus counts and turns them into a G2PModel."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize an empty builder.

        Args:
            config: Configuration dict
        """
        self.config = config or get_config()
        self.emission = WeightedDirectedGraph()
        self.transitions = WeightedDirectedGraph()
        self.grapheme_counts: Dict[str, float] = defaultdict(float)
        self.phoneme_counts: Dict[str, float] = defaultdict(float)
        self.num_records = 0
        self._built = False

    def _add_phone(self, phone: str) -> None:
        self.emission.add_node(phone)
        self.transitions.add_node(phone)

    def _add_grapheme(self, grapheme: str) -> None:
        self.emission.add_node(grapheme)
        self.grapheme_counts[grapheme] += 1

    def add_record(self, record: AlignmentRecord) -> None:
        """Accumulate the counts of one alignment record.

        Args:
            record: Parsed alignment record
        """
        if self._built:
            raise InvalidStateError("Model already built; records cannot be added")

        graphemes = record.graphemes
        processed = [False] * len(graphemes)

        # The silent phone must always be a valid decode target.
        self._add_phone(SILENT_PHONE)

        prev_phone = None
        for phone, index in record.alignments:
            self.phoneme_counts[phone] += 1
            grapheme = graphemes[index]
            self._add_phone(phone)
            self._add_grapheme(grapheme)
            self.emission.increment_edge(grapheme, phone)

            if prev_phone is not None:
                self.transitions.increment_edge(prev_phone, phone)

            prev_phone = phone
            processed[index] = True

        # Graphemes that emitted nothing (e.g. a silent 'e') map to the silent phone.
        for i, grapheme in enumerate(graphemes):
            if processed[i]:
                continue
            self.emission.add_node(grapheme)
            self.emission.increment_edge(grapheme, SILENT_PHONE)
            if i > 0:
                self._add_phone(grapheme)
                self._add_phone(graphemes[i - 1])
                self.transitions.increment_edge(graphemes[i - 1], grapheme)

        self.num_records += 1

    def add_line(self, line: str, line_number: Optional[int] = None) -> bool:
        """Parse and accumulate one corpus line.

        Returns:
            True if the line was a record, False if it was a header
        """
        if is_header(line):
            logger.debug(f"Skipping header line {line_number}: {line!r}")
            return False
        self.add_record(parse_record(line, self.config, line_number))
        return True

    def feed(self, lines: Iterable[str]) -> int:
        """Accumulate corpus lines until the terminator or the end of input.

        Args:
            lines: Corpus lines, with or without trailing newlines

        Returns:
            Number of records read
        """
        corpus_config = self.config['corpus']
        terminator = corpus_config['terminator']
        num_records = 0

        for line_number, line in enumerate(
                tqdm(lines, desc="Reading corpus", disable=not corpus_config['show_progress']),
                start=1):
            line = line.rstrip('\r\n')
            if line.strip() == terminator:
                logger.debug(f"Terminator reached at line {line_number}")
                break
            if self.add_line(line, line_number):
                num_records += 1

        return num_records

    def build(self) -> G2PModel:
        """Normalize the accumulated counts into a trained model.

        Returns:
            Trained G2PModel

        Raises:
            InvalidStateError: If the builder has already built a model
            MalformedModelError: If a node has no positive outgoing weight
        """
        if self._built:
            raise InvalidStateError("Model already built")

        self.emission.normalize()
        self.transitions.normalize()
        self._built = True

        model = G2PModel(
            self.emission,
            self.transitions,
            dict(self.grapheme_counts),
            dict(self.phoneme_counts),
        )
        logger.info(f"Built model from {self.num_records} records: {model.summary()}")
        return model


def build_model(lines: Iterable[str],
                config: Optional[Dict[str, Any]] = None) -> G2PModel:
    """Train a model from corpus lines.

    Args:
        lines: Corpus lines
        config: Configuration dict

    Returns:
        Trained G2PModel
    """
    builder = CorpusModelBuilder(config)
    builder.feed(lines)
    return builder.build()


def load_corpus(path: str, config: Optional[Dict[str, Any]] = None) -> G2PModel:
    """Train a model from a corpus file.

    Args:
        path: Path to the corpus file
        config: Configuration dict

    Returns:
        Trained G2PModel
    """
    logger.info(f"Loading corpus from {path}")
    with open(path, 'r') as f:
        return build_model(f, config)
