"""Read-only index ports consumed by query expansion.

Why (SAM): The index (lexicon, postings, document/meta indexes) is an external
collaborator. Application code only sees these Protocols; infrastructure
provides concrete adapters (see infrastructure/index).
"""

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from prf_engine.domain.models import CollectionStatistics, LexiconEntry

__all__ = [
    "CollectionStatistics",
    "DirectIndexPort",
    "DocumentIndexPort",
    "IndexPort",
    "InvertedIndexPort",
    "LexiconEntry",
    "LexiconPort",
    "MetaIndexPort",
]


class LexiconPort(Protocol):
    def get(self, term: str) -> LexiconEntry | None: ...


class DirectIndexPort(Protocol):
    def get_postings(self, docid: int) -> Mapping[str, int]:
        """Return term -> frequency for one document.

        Raises:
            OSError: If the postings cannot be read
        """
        ...


class InvertedIndexPort(Protocol):
    def get_postings(self, term: str) -> Mapping[int, int]: ...


class DocumentIndexPort(Protocol):
    def get_document_length(self, docid: int) -> int: ...


class MetaIndexPort(Protocol):
    def get_item(self, key: str, docid: int) -> str | None: ...

    def get_docid(self, key: str, value: str) -> int | None: ...


@runtime_checkable
class IndexPort(Protocol):
    """Index-scope binding: everything expansion may read, all read-only."""

    @property
    def lexicon(self) -> LexiconPort: ...

    @property
    def direct_index(self) -> DirectIndexPort | None: ...

    @property
    def inverted_index(self) -> InvertedIndexPort: ...

    @property
    def document_index(self) -> DocumentIndexPort: ...

    @property
    def meta_index(self) -> MetaIndexPort: ...

    @property
    def collection_statistics(self) -> CollectionStatistics: ...
