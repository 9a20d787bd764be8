"""Evaluation of decoders against a gold-standard alignment file.

Implements:
- True positive / false positive / false negative counts per record
- Precision, recall and F1 over a whole gold file
- Phoneme error rate (edit distance over phoneme tokens)

Gold lines have the corpus record shape: "WORD PHONE_1 IDX_1 PHONE_2 IDX_2 ...".
A decoded phoneme sequence is split on the separator and the token at each
gold index is compared against the gold phone.
"""

import logging
from typing import Any, Dict, Iterable, NamedTuple, Optional, Sequence, Tuple

import editdistance
import numpy as np
from tqdm import tqdm

from .config import get_config
from .corpus import parse_alignments
from .decode import BaselineDecoder, Decoder, ViterbiDecoder
from .errors import MalformedRecordError

logger = logging.getLogger(__name__)


class GoldRecord(NamedTuple):
    word: str
    alignments: Tuple[Tuple[str, int], ...]


def parse_gold_record(line: str,
                      config: Optional[Dict[str, Any]] = None,
                      line_number: Optional[int] = None) -> GoldRecord:
    """Parse one gold-standard line.

    Args:
        line: Gold line
        config: Configuration dict
        line_number: Line number, attached to errors

    Returns:
        Parsed GoldRecord

    Raises:
        MalformedRecordError: On an odd token count or a bad index
    """
    corpus_config = (config or get_config())['corpus']
    tokens = line.split()
    if not tokens:
        raise MalformedRecordError("empty gold record", line, line_number)

    word = tokens[0]
    num_graphemes = len(word.split(corpus_config['grapheme_separator']))
    alignments = parse_alignments(
        tokens[1:],
        num_graphemes,
        end_of_phones=corpus_config['end_of_phones'],
        lowercase=corpus_config['lowercase'],
        line=line,
        line_number=line_number,
    )
    return GoldRecord(word, alignments)


class ScoreCounts:
    """True positive, false positive and false negative counts."""

    def __init__(self, tp: int = 0, fp: int = 0, fn: int = 0):
        self.tp = tp
        self.fp = fp
        self.fn = fn

    def __add__(self, other: 'ScoreCounts') -> 'ScoreCounts':
        return ScoreCounts(self.tp + other.tp, self.fp + other.fp, self.fn + other.fn)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ScoreCounts):
            return NotImplemented
        return (self.tp, self.fp, self.fn) == (other.tp, other.fp, other.fn)

    def __repr__(self) -> str:
        return f"ScoreCounts(tp={self.tp}, fp={self.fp}, fn={self.fn})"

    @property
    def precision(self) -> float:
        denom = self.tp + self.fp
        return self.tp / denom if denom > 0 else 0.0

    @property
    def recall(self) -> float:
        denom = self.tp + self.fn
        return self.tp / denom if denom > 0 else 0.0

    @property
    def f1(self) -> float:
        p, r = self.precision, self.recall
        return 2 * p * r / (p + r) if p + r > 0 else 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            'tp': self.tp,
            'fp': self.fp,
            'fn': self.fn,
            'precision': self.precision,
            'recall': self.recall,
            'f1': self.f1,
        }


def score_record(attempt: Optional[str],
                 gold: Sequence[Tuple[str, int]],
                 separator: str = '-') -> ScoreCounts:
    """Score one decoded sequence against its gold alignment.

    - No result: every gold phone is a false negative
    - Gold phones beyond the decoded length are false negatives
    - A token equal to the gold phone at its index is a true positive
    - A mismatch is a false positive only the first time its index is
      visited (consecutive gold phones may share an index)

    Args:
        attempt: Decoded phonemes joined by the separator, or None
        gold: Gold (phone, index) pairs
        separator: Phoneme separator in attempt

    Returns:
        ScoreCounts for this record
    """
    counts = ScoreCounts()
    if attempt is None:
        counts.fn = len(gold)
        return counts

    tokens = attempt.split(separator)
    counts.fn = max(0, len(gold) - len(tokens))

    last_index = None
    for phone, index in gold:
        if index < len(tokens):
            if tokens[index] == phone:
                counts.tp += 1
            elif index != last_index:
                counts.fp += 1
        last_index = index
    return counts


def phoneme_error_rate(attempt: Optional[str],
                       gold: Sequence[Tuple[str, int]],
                       separator: str = '-') -> float:
    """Edit distance between decoded and gold phonemes over the longer length."""
    hypothesis = [] if attempt is None else attempt.split(separator)
    reference = [phone for phone, _ in gold]
    max_len = max(len(hypothesis), len(reference))
    if max_len == 0:
        return 0.0
    return editdistance.eval(hypothesis, reference) / max_len


class G2PEvaluator:
    """Scores one or more decoders over the same gold records."""

    def __init__(self,
                 decoders: Dict[str, Decoder],
                 config: Optional[Dict[str, Any]] = None):
        """Initialize evaluator.

        Args:
            decoders: Mapping from a report name to a decoder
            config: Configuration dict
        """
        self.decoders = decoders
        self.config = config or get_config()
        self.separator = self.config['decoding']['separator']

    @classmethod
    def from_model(cls, model, config: Optional[Dict[str, Any]] = None) -> 'G2PEvaluator':
        """Evaluate the Viterbi decoder against the greedy baseline."""
        config = config or get_config()
        return cls({
            'viterbi': ViterbiDecoder.from_model(model, config),
            'baseline': BaselineDecoder.from_model(model, config),
        }, config)

    def evaluate(self, gold_lines: Iterable[str]) -> Dict[str, Dict[str, float]]:
        """Decode and score every gold record.

        Args:
            gold_lines: Gold-standard lines; blank lines are skipped

        Returns:
            Dictionary mapping decoder name to its metrics
        """
        counts = {name: ScoreCounts() for name in self.decoders}
        error_rates = {name: [] for name in self.decoders}
        num_records = 0

        show_progress = self.config['evaluation']['show_progress']
        for line_number, line in enumerate(
                tqdm(gold_lines, desc="Evaluating", disable=not show_progress), start=1):
            if not line.strip():
                continue
            record = parse_gold_record(line, self.config, line_number)
            num_records += 1

            for name, decoder in self.decoders.items():
                attempt = decoder.decode(record.word)
                counts[name] = counts[name] + score_record(
                    attempt, record.alignments, self.separator
                )
                error_rates[name].append(
                    phoneme_error_rate(attempt, record.alignments, self.separator)
                )

        metrics = {}
        for name in self.decoders:
            metrics[name] = counts[name].to_dict()
            metrics[name]['per'] = float(np.mean(error_rates[name])) if error_rates[name] else 0.0
            metrics[name]['records'] = num_records
            logger.info(
                f"{name}: TP {counts[name].tp} FP {counts[name].fp} FN {counts[name].fn} "
                f"precision {counts[name].precision:.4f} recall {counts[name].recall:.4f}"
            )
        return metrics

    def evaluate_file(self, gold_path: str) -> Dict[str, Dict[str, float]]:
        """Evaluate against a gold-standard file."""
        logger.info(f"Evaluating against {gold_path}")
        with open(gold_path, 'r') as f:
            return self.evaluate(f)
