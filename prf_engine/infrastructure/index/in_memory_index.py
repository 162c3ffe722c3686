"""In-memory index adapter.

Builds every structure query expansion reads (lexicon, direct and inverted
postings, document lengths, docno meta data, collection statistics) from raw
texts. Suitable for tests, the CLI and small corpora served by the HTTP API.
"""

from __future__ import annotations

import json
import re
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from prf_engine.domain.errors import ValidationError
from prf_engine.domain.models import CollectionStatistics, LexiconEntry

_TOKEN = re.compile(r"\b[a-zA-Z0-9]+\b")


def tokenize(text: str) -> list[str]:
    """Lowercase alphanumeric tokens."""
    return _TOKEN.findall(text.lower())


@dataclass
class InMemoryLexicon:
    entries: dict[str, LexiconEntry] = field(default_factory=dict)

    def get(self, term: str) -> LexiconEntry | None:
        return self.entries.get(term)


@dataclass
class InMemoryDirectIndex:
    postings: dict[int, dict[str, int]] = field(default_factory=dict)

    def get_postings(self, docid: int) -> Mapping[str, int]:
        try:
            return self.postings[docid]
        except KeyError:
            raise OSError(f"no direct postings for document {docid}") from None


@dataclass
class InMemoryInvertedIndex:
    postings: dict[str, dict[int, int]] = field(default_factory=dict)

    def get_postings(self, term: str) -> Mapping[int, int]:
        return self.postings.get(term, {})


@dataclass
class InMemoryDocumentIndex:
    lengths: list[int] = field(default_factory=list)

    def get_document_length(self, docid: int) -> int:
        return self.lengths[docid]


@dataclass
class InMemoryMetaIndex:
    items: dict[str, list[str]] = field(default_factory=dict)
    _reverse: dict[str, dict[str, int]] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        for key, values in self.items.items():
            self._reverse[key] = {v: docid for docid, v in enumerate(values)}

    def get_item(self, key: str, docid: int) -> str | None:
        values = self.items.get(key)
        if values is None or not 0 <= docid < len(values):
            return None
        return values[docid]

    def get_docid(self, key: str, value: str) -> int | None:
        return self._reverse.get(key, {}).get(value)


@dataclass(frozen=True)
class InMemoryIndex:
    """IndexPort implementation; docids are positions in insertion order."""

    lexicon: InMemoryLexicon
    direct_index: InMemoryDirectIndex | None
    inverted_index: InMemoryInvertedIndex
    document_index: InMemoryDocumentIndex
    meta_index: InMemoryMetaIndex
    collection_statistics: CollectionStatistics

    @classmethod
    def build(
        cls,
        documents: Iterable[tuple[str, str]],
        with_direct_index: bool = True,
    ) -> InMemoryIndex:
        """Index (docno, text) pairs.

        Raises:
            ValidationError: If a docno occurs twice
        """
        docnos: list[str] = []
        lengths: list[int] = []
        direct: dict[int, dict[str, int]] = {}
        inverted: dict[str, dict[int, int]] = {}
        seen: set[str] = set()

        for docid, (docno, text) in enumerate(documents):
            if docno in seen:
                raise ValidationError(f"duplicate docno: {docno}")
            seen.add(docno)
            tokens = tokenize(text)
            counts = Counter(tokens)
            docnos.append(docno)
            lengths.append(len(tokens))
            direct[docid] = dict(counts)
            for term, tf in counts.items():
                inverted.setdefault(term, {})[docid] = tf

        entries = {
            term: LexiconEntry(
                term=term,
                document_frequency=len(postings),
                frequency=sum(postings.values()),
            )
            for term, postings in inverted.items()
        }
        stats = CollectionStatistics(
            number_of_documents=len(docnos),
            number_of_tokens=sum(lengths),
            number_of_unique_terms=len(entries),
        )
        return cls(
            lexicon=InMemoryLexicon(entries),
            direct_index=InMemoryDirectIndex(direct) if with_direct_index else None,
            inverted_index=InMemoryInvertedIndex(inverted),
            document_index=InMemoryDocumentIndex(lengths),
            meta_index=InMemoryMetaIndex({"docno": docnos}),
            collection_statistics=stats,
        )

    @classmethod
    def from_json_file(cls, path: str | Path, with_direct_index: bool = True) -> InMemoryIndex:
        """Load a corpus file: a JSON list of {"docno": str, "text": str} objects.

        "id" is accepted in place of "docno".
        """
        with open(path, encoding="utf-8") as f:
            try:
                docs = json.load(f)
            except (json.JSONDecodeError, UnicodeDecodeError) as ex:
                raise ValidationError(f"{path}: invalid JSON: {ex}") from ex
        if not isinstance(docs, list):
            raise ValidationError(f"{path}: expected a JSON list of documents")
        pairs = []
        for i, d in enumerate(docs):
            if not isinstance(d, dict):
                raise ValidationError(f"{path}: document {i} must be an object")
            docno = d.get("docno", d.get("id"))
            if docno is None or "text" not in d:
                raise ValidationError(f"{path}: document {i} needs 'docno' and 'text'")
            pairs.append((str(docno), str(d["text"])))
        return cls.build(pairs, with_direct_index=with_direct_index)
