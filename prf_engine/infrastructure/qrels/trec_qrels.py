"""TREC qrels adapter for relevance feedback.

File format, one judgement per line: "<qid> <iteration> <docno> <label>".
Labels > 0 count as relevant.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from prf_engine.application.ports.relevance_judgements_port import RelevanceJudgementsPort
from prf_engine.domain.errors import ValidationError


class TrecQrelsAdapter(RelevanceJudgementsPort):
    def __init__(self, judgements: dict[str, frozenset[str]] | None = None) -> None:
        self._relevant = judgements or {}

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> TrecQrelsAdapter:
        """Parse qrels lines; blank lines and lines starting with '#' are skipped.

        Raises:
            ValidationError: On a malformed line
        """
        relevant: dict[str, set[str]] = {}
        for lineno, line in enumerate(lines, 1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            parts = line.split()
            if len(parts) != 4:
                raise ValidationError(f"qrels line {lineno}: expected 4 fields, got {len(parts)}")
            qid, _iteration, docno, label = parts
            try:
                grade = int(label)
            except ValueError as ex:
                raise ValidationError(f"qrels line {lineno}: bad label {label!r}") from ex
            docs = relevant.setdefault(qid, set())
            if grade > 0:
                docs.add(docno)
        return cls({qid: frozenset(docs) for qid, docs in relevant.items()})

    @classmethod
    def from_file(cls, path: str | Path) -> TrecQrelsAdapter:
        with open(path, encoding="utf-8") as f:
            return cls.from_lines(f)

    def relevant_docnos(self, query_id: str) -> frozenset[str]:
        return self._relevant.get(query_id, frozenset())
