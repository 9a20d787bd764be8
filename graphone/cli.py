"""Command-line interface.

    graphone interactive --corpus corpus.txt
    graphone decode --corpus corpus.txt wh-a-t s-ee
    graphone evaluate --corpus corpus.txt --gold gold_standard.txt
    graphone export --corpus corpus.txt --output model_dir
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional, TextIO

from .config import load_config, setup_logging
from .corpus import G2PModel, load_corpus
from .decode import BaselineDecoder, ViterbiDecoder
from .errors import MalformedModelError, MalformedRecordError
from .evaluate import G2PEvaluator
from .export import export_model, load_model

logger = logging.getLogger(__name__)


def run_interactive(model: G2PModel,
                    config: Dict[str, Any],
                    stdin: Optional[TextIO] = None,
                    stdout: Optional[TextIO] = None) -> None:
    """Read grapheme strings and print both decoders' output until quit."""
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout
    viterbi = ViterbiDecoder.from_model(model, config)
    baseline = BaselineDecoder.from_model(model, config)
    quit_command = config['interactive']['quit_command']
    prompt = "Please provide a string to parse using these graphemes: "

    print("Here are the available graphemes: ", file=stdout)
    print(model.graphemes(), file=stdout)
    print("Each pair of graphemes should have a hyphen between them: ", file=stdout)
    print(f"Example: {config['interactive']['example']}", file=stdout)
    print(prompt, end='', file=stdout, flush=True)

    for line in stdin:
        line = line.strip()
        if line == quit_command:
            break
        print(f"Using the modified Viterbi algorithm: {viterbi.decode(line)}", file=stdout)
        print(f"Baseline: {baseline.decode(line)}", file=stdout)
        print(prompt, end='', file=stdout, flush=True)
    print(file=stdout)


def _load(args, config: Dict[str, Any]) -> G2PModel:
    if getattr(args, 'model', None):
        return load_model(args.model)
    return load_corpus(args.corpus, config)


def _add_model_source(parser: argparse.ArgumentParser, allow_model: bool = True) -> None:
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--corpus', type=str, help='Aligned training corpus')
    if allow_model:
        group.add_argument('--model', type=str, help='Directory written by "export"')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='graphone',
        description='Grapheme-to-phoneme conversion with a modified Viterbi decoder.')
    parser.add_argument('--config', type=str, default=None, help='JSON configuration file')
    parser.add_argument('--log-level', type=str, default=None, help='Logging level')
    subparsers = parser.add_subparsers(dest='command', required=True)

    interactive = subparsers.add_parser('interactive', help='Decode words typed on stdin')
    _add_model_source(interactive)

    decode = subparsers.add_parser('decode', help='Decode the given grapheme sequences')
    _add_model_source(decode)
    decode.add_argument('words', nargs='+', help='Hyphen-delimited grapheme sequences')

    evaluate = subparsers.add_parser('evaluate', help='Score both decoders on a gold file')
    _add_model_source(evaluate)
    evaluate.add_argument('--gold', type=str, required=True, help='Gold-standard alignments')
    evaluate.add_argument('--output', type=str, default=None, help='Write metrics as JSON')

    export = subparsers.add_parser('export', help='Train on a corpus and save the model')
    _add_model_source(export, allow_model=False)
    export.add_argument('--output', type=str, required=True, help='Output directory')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    setup_logging(config, args.log_level)

    try:
        model = _load(args, config)

        if args.command == 'interactive':
            run_interactive(model, config)

        elif args.command == 'decode':
            viterbi = ViterbiDecoder.from_model(model, config)
            baseline = BaselineDecoder.from_model(model, config)
            for word in args.words:
                print(f"{word}\tviterbi={viterbi.decode(word)}\tbaseline={baseline.decode(word)}")

        elif args.command == 'evaluate':
            metrics = G2PEvaluator.from_model(model, config).evaluate_file(args.gold)
            for name, values in metrics.items():
                print(f"{name}:")
                print(f"TP : {values['tp']} FP : {values['fp']} FN : {values['fn']}")
                print(f"Precision: {values['precision']} Recall: {values['recall']}")
            if args.output:
                with open(args.output, 'w') as f:
                    json.dump(metrics, f, indent=2)

        elif args.command == 'export':
            export_model(model, args.output, config)

    except (MalformedRecordError, MalformedModelError) as e:
        logger.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
