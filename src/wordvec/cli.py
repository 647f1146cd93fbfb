#!/usr/bin/env python3
"""
CLI for querying a word2vec binary model.

Usage:
    python -m wordvec.cli --help
    python -m wordvec.cli --model vectors.bin info
    python -m wordvec.cli --model vectors.bin distance king
    python -m wordvec.cli --model vectors.bin analogy man king woman --all
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import WordVecConfig
from .core.exceptions import ConfigError, FormatError, WordVecError
from .core.logging import configure_logging, get_logger
from .core.types import QueryMode, QueryResult
from .engine import ANALOGY_WORDS, split_query
from .holder import ModelHolder


logger = get_logger(__name__)

EXIT_LOAD_FAILED = 1
EXIT_BAD_QUERY = 2


def build_holder(args: argparse.Namespace, config: WordVecConfig) -> ModelHolder:
    """Load the configured model into a new holder."""
    model_path = Path(args.model) if args.model else config.get_model_path()
    if model_path is None:
        raise ConfigError("No model file given (use --model or set WORDVEC_MODEL_PATH)")
    
    holder = ModelHolder(
        max_dimension=config.get_max_dimension(),
        encoding=config.get_encoding(),
    )
    holder.load_file(model_path)
    return holder


def print_result(result: QueryResult, args: argparse.Namespace) -> None:
    """Print the top word, or the ranked list with --all."""
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return
    
    if not args.all:
        print(result.best.word if result.best else "")
        return
    
    print(f"\n{result.mode.value.capitalize()} for: {' '.join(result.words)}")
    unresolved = result.unresolved_words
    if unresolved:
        print(f"Not in vocabulary: {', '.join(unresolved)}")
    print("=" * 50)
    print(f"{'Word':<36}{'Cosine':>14}")
    print("-" * 50)
    for entry in result.results:
        print(f"{entry.word:<36}{entry.score:>14.6f}")


def cmd_info(args: argparse.Namespace, config: WordVecConfig) -> int:
    """Show model shape."""
    store = build_holder(args, config).current
    
    print(f"\nVocabulary size:  {store.vocab_size}")
    print(f"Dimension:        {store.dimension}")
    print(f"Zero vectors:     {len(store.degenerate_rows)}")
    return 0


def _run_query(args: argparse.Namespace, config: WordVecConfig, mode: QueryMode) -> int:
    holder = build_holder(args, config)
    engine = holder.engine(top_k=config.get_top_k(), floor=config.get_floor())
    result = engine.query(" ".join(args.words), mode, k=args.k)
    print_result(result, args)
    return 0


def cmd_distance(args: argparse.Namespace, config: WordVecConfig) -> int:
    """Nearest words to the sum of the given words."""
    return _run_query(args, config, QueryMode.DISTANCE)


def cmd_analogy(args: argparse.Namespace, config: WordVecConfig) -> int:
    """Complete 'A is to B as C is to ?'."""
    if len(split_query(" ".join(args.words))) != ANALOGY_WORDS:
        print("3 WORDS!", file=sys.stderr)
        return EXIT_BAD_QUERY
    return _run_query(args, config, QueryMode.ANALOGY)


def cmd_export_text(args: argparse.Namespace, config: WordVecConfig) -> int:
    """Write the normalized table as text."""
    store = build_holder(args, config).current
    with open(args.output, "w", encoding="utf-8") as f:
        store.dump_text(f, precision=args.precision)
    print(f"Wrote {store.vocab_size} vectors to {args.output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wordvec",
        description="Nearest-neighbour and analogy queries over word2vec binary models",
    )
    parser.add_argument("--config", type=Path, help="YAML config file")
    parser.add_argument("--model", help="Binary model file (overrides config)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    
    subparsers = parser.add_subparsers(dest="command", required=True)
    
    info_parser = subparsers.add_parser("info", help="Show model shape")
    info_parser.set_defaults(func=cmd_info)
    
    for name, func, help_text in [
        ("distance", cmd_distance, "Nearest words to one or more words"),
        ("analogy", cmd_analogy, "Analogy A:B :: C:?"),
    ]:
        query_parser = subparsers.add_parser(name, help=help_text)
        query_parser.add_argument("words", nargs="+", help="Query words")
        query_parser.add_argument("-k", type=int, default=None, help="Number of results")
        query_parser.add_argument("--all", action="store_true", help="Print the ranked list")
        query_parser.add_argument("--json", action="store_true", help="Print JSON")
        query_parser.set_defaults(func=func)
    
    export_parser = subparsers.add_parser("export-text", help="Write vectors as text")
    export_parser.add_argument("output", type=Path, help="Output file")
    export_parser.add_argument("--precision", type=int, default=6, help="Decimal places")
    export_parser.set_defaults(func=cmd_export_text)
    
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    
    try:
        config = WordVecConfig(args.config)
    except (ConfigError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_LOAD_FAILED
    
    level = logging.DEBUG if args.verbose else config.get_log_level()
    configure_logging(level=level, structured=bool(config.get("logging.structured", False)))
    
    try:
        return args.func(args, config)
    except (FormatError, ConfigError, OSError) as e:
        logger.error(f"Could not load model: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_LOAD_FAILED
    except WordVecError as e:
        logger.error(f"Query failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_BAD_QUERY


if __name__ == "__main__":
    sys.exit(main())
