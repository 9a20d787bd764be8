"""Graphone package.

Grapheme-to-phoneme conversion with a hidden Markov model trained from an
aligned pronunciation corpus, decoded by a modified Viterbi search and
compared against a greedy baseline.
"""

__version__ = "0.1.0"

from .errors import (
    InvalidInputError,
    InvalidStateError,
    MalformedRecordError,
    MalformedModelError,
)
from .graph import WeightedDirectedGraph
from .corpus import CorpusModelBuilder, G2PModel, build_model, load_corpus
from .decode import ViterbiDecoder, BaselineDecoder
from .evaluate import G2PEvaluator, ScoreCounts, score_record

__all__ = [
    "InvalidInputError",
    "InvalidStateError",
    "MalformedRecordError",
    "MalformedModelError",
    "WeightedDirectedGraph",
    "CorpusModelBuilder",
    "G2PModel",
    "build_model",
    "load_corpus",
    "ViterbiDecoder",
    "BaselineDecoder",
    "G2PEvaluator",
    "ScoreCounts",
    "score_record",
]
