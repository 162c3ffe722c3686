"""CLI search with pseudo-relevance feedback.

Interface layer is thin: parse args, call the use case, format output.
"""

import argparse
import dataclasses
import sys

from prf_engine.application.dto.expansion_dto import expansion_controls
from prf_engine.application.dto.search_dto import SearchQuery
from prf_engine.config.composition import (
    build_index,
    build_relevance_judgements,
    build_search_use_case,
    build_telemetry,
)
from prf_engine.config.logging import setup_logging
from prf_engine.config.settings import AppSettings
from prf_engine.domain.errors import DomainError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prf-search",
        description="BM25 search with query expansion from pseudo-relevance feedback",
    )
    parser.add_argument("--corpus", help="JSON corpus file (default: PRF_CORPUS_PATH)")
    parser.add_argument("--query", required=True, help="Query text")
    parser.add_argument("--qid", default="1", help="Query id (used for qrels lookups)")
    parser.add_argument(
        "--qe",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Run query expansion after the first pass",
    )
    parser.add_argument("--model", help="Expansion model, e.g. Bo1, Bo2, KL")
    parser.add_argument("--fb-docs", type=int, help="Feedback documents")
    parser.add_argument("--fb-terms", type=int, help="Expansion terms (0 = re-weight only)")
    parser.add_argument("--selector", help="Feedback selector chain, comma-separated")
    parser.add_argument("--no-2nd-pass", action="store_true", help="Skip second-pass matching")
    parser.add_argument("--qrels", help="TREC qrels for relevance feedback selectors")
    parser.add_argument("--k", type=int, default=10, help="Hits to print")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = AppSettings()
    setup_logging(settings.log_level, settings.log_json)
    overrides = {}
    if args.corpus:
        overrides["corpus_path"] = args.corpus
    if args.qrels:
        overrides["qrels_path"] = args.qrels
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    try:
        index = build_index(settings)
        judgements = build_relevance_judgements(settings)
    except (DomainError, OSError) as err:
        print(f"[ERROR] {type(err).__name__}: {err}", file=sys.stderr)
        return 2

    uc = build_search_use_case(
        settings, index, judgements=judgements, telemetry=build_telemetry(settings)
    )
    req = SearchQuery(
        text=args.query,
        query_id=args.qid,
        expand=args.qe,
        top_k=args.k,
        controls=expansion_controls(
            model=args.model,
            feedback_documents=args.fb_docs,
            feedback_terms=args.fb_terms,
            no_second_pass=args.no_2nd_pass,
            feedback_selector=args.selector,
        ),
    )
    result = uc.execute(req)

    if result.ok and result.value is not None:
        outcome = result.value
        if outcome.expanded_query is not None:
            print(f"expanded query: {outcome.expanded_query}")
        if outcome.expansion_error is not None:
            print(f"[WARN] query expansion skipped: {outcome.expansion_error}")
        for hit in outcome.hits:
            print(f"{hit.rank}\t{hit.docno}\t{hit.score:.4f}")
        return 0

    err = result.error
    print(f"[ERROR] {type(err).__name__}: {err}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
