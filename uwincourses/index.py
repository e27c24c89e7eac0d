"""
Persistent full-text index over course summaries (tantivy).

Fields:
- term         exact match only (raw tokenizer)
- code, title  3-character ngrams, lower-cased, so "60-1" or "discr" match
               inside a code or title
- description  ordinary word tokenization for free-text relevance

An index is written once by CourseIndex.create() and never updated; a new
corpus means a new index directory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

import tantivy

from uwincourses.config import MAX_TOKEN_LENGTH, NGRAM_SIZE, QUERY_LIMIT
from uwincourses.errors import InternalError, QueryError
from uwincourses.model import Corpus, CoursePreview, DetailFetcher


logger = logging.getLogger(__name__)

NGRAM_TOKENIZER = "ngram3"
SEARCH_FIELDS = ["code", "title", "description"]

# 50 MB, tantivy's usual writer budget
WRITER_HEAP_SIZE = 50_000_000


def build_schema() -> tantivy.Schema:
    builder = tantivy.SchemaBuilder()
    builder.add_text_field("term", stored=True, tokenizer_name="raw")
    builder.add_text_field("code", stored=True, tokenizer_name=NGRAM_TOKENIZER)
    builder.add_text_field("title", stored=True, tokenizer_name=NGRAM_TOKENIZER)
    builder.add_text_field("description", stored=True, tokenizer_name="default")
    return builder.build()


def ngram_analyzer() -> tantivy.TextAnalyzer:
    return (
        tantivy.TextAnalyzerBuilder(tantivy.Tokenizer.ngram(min_gram=NGRAM_SIZE, max_gram=NGRAM_SIZE, prefix_only=False))
        .filter(tantivy.Filter.remove_long(MAX_TOKEN_LENGTH))
        .filter(tantivy.Filter.lowercase())
        .build()
    )


SCHEMA = build_schema()


def _open_tantivy(path: Path) -> tantivy.Index:
    # Tokenizers are not persisted with the index; register on every open
    index = tantivy.Index(SCHEMA, path=str(path), reuse=True)
    index.register_tokenizer(NGRAM_TOKENIZER, ngram_analyzer())
    return index


def sort_by_code(previews: Iterable[CoursePreview]) -> List[CoursePreview]:
    """
    Presentation order for lists of results; query() returns relevance order.
    """
    return sorted(previews, key=lambda p: p.code)


class CourseIndex:
    """
    One committed, read-only snapshot of the course index.

    Safe to query from many threads at once.
    """

    def __init__(self, index: tantivy.Index, path: Path) -> None:
        self._index = index
        self._searcher = index.searcher()
        self.path = path

    @classmethod
    def create(cls, path: str | Path, corpus: Corpus) -> "CourseIndex":
        """
        Write every summary of the corpus into a new index at `path`.

        Nothing is visible until the single commit at the end.
        """
        path = Path(path)
        try:
            path.mkdir(parents=True, exist_ok=False)
            index = _open_tantivy(path)

            writer = index.writer(heap_size=WRITER_HEAP_SIZE)
            count = 0
            for term, summaries in corpus.items():
                for summary in summaries:
                    doc = tantivy.Document()
                    doc.add_text("term", term)
                    doc.add_text("code", summary.code)
                    doc.add_text("title", summary.title)
                    doc.add_text("description", summary.description)
                    writer.add_document(doc)
                    count += 1

            writer.commit()
            writer.wait_merging_threads()
            index.reload()
        except (OSError, ValueError) as exc:
            raise InternalError(f"Could not write index at {path}: {exc}") from exc

        logger.info("Committed %d courses to %s", count, path)
        return cls(index, path)

    @classmethod
    def open(cls, path: str | Path) -> "CourseIndex":
        path = Path(path)
        try:
            index = _open_tantivy(path)
        except (OSError, ValueError) as exc:
            raise InternalError(f"Could not open index at {path}: {exc}") from exc
        return cls(index, path)

    @property
    def num_docs(self) -> int:
        return self._searcher.num_docs

    def query(
        self,
        term: str,
        text: str,
        fetch_detail: Optional[DetailFetcher] = None,
        limit: int = QUERY_LIMIT,
    ) -> List[CoursePreview]:
        """
        Best `limit` matches of `text` among the courses of `term`.

        Raises QueryError when `text` is not valid query syntax.
        """
        try:
            user_query = self._index.parse_query(text, SEARCH_FIELDS)
        except ValueError as exc:
            raise QueryError(str(exc)) from exc

        query = tantivy.Query.boolean_query(
            [
                (tantivy.Occur.Must, tantivy.Query.term_query(SCHEMA, "term", term)),
                (tantivy.Occur.Must, user_query),
            ]
        )

        try:
            hits = self._searcher.search(query, limit).hits
            docs = [self._searcher.doc(address) for _score, address in hits]
        except ValueError as exc:
            raise InternalError(f"Search failed: {exc}") from exc

        return [
            CoursePreview(
                term=doc.get_first("term"),
                code=doc.get_first("code"),
                title=doc.get_first("title"),
                fetch_detail=fetch_detail,
            )
            for doc in docs
        ]
