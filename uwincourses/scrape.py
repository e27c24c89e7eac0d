"""
Scrape orchestration.

- build_corpus(): terms -> course codes per term -> title/description of
  every course, scraped in parallel
- scrape_detail(): full record of one course, stitched together from three
  portal pages

Build rule: one failed course fails its term, one failed term fails the
build. There is never a partial corpus.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, TypeVar

from uwincourses import extract
from uwincourses.config import max_workers as default_max_workers
from uwincourses.errors import ExtractionError
from uwincourses.model import Corpus, CourseDetail, CourseSummary, Term
from uwincourses.portal import PortalClient, split_code


logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def gather_first_error(pool: Executor, fn: Callable[[T], R], items: List[T]) -> List[R]:
    """
    Run fn over items on pool and wait for every task.

    Results are collected in completion order. If any task failed, the
    first failure to complete is raised and all results are dropped;
    in-flight siblings are never cancelled.
    """
    futures = [pool.submit(fn, item) for item in items]

    results: List[R] = []
    first_error: Optional[BaseException] = None

    for future in as_completed(futures):
        exc = future.exception()
        if exc is not None:
            if first_error is None:
                first_error = exc
            continue
        results.append(future.result())

    if first_error is not None:
        raise first_error
    return results


class Scraper:
    def __init__(self, portal: Optional[PortalClient] = None, max_workers: Optional[int] = None) -> None:
        self.portal = portal or PortalClient()
        self.max_workers = max_workers or default_max_workers()

    # -----------------------------------------------------------------------
    # Listing
    # -----------------------------------------------------------------------

    # An error page in place of a listing is a fault, never an empty listing

    def terms(self) -> List[Term]:
        doc = extract.parse_document(self.portal.term_list())
        if extract.has_portal_error(doc):
            raise ExtractionError("terms", "Portal reported an error for the search form")
        return extract.extract_terms(doc)

    def course_codes(self, term: str) -> List[str]:
        doc = extract.parse_document(self.portal.course_list(term))
        if extract.has_portal_error(doc):
            raise ExtractionError("course_list", f"Portal reported an error for the courses of {term}")
        return extract.extract_course_codes(doc)

    def scrape_summary(self, term: str, code: str) -> CourseSummary:
        """
        Basic scrape: title + description of one course.

        The course came from the portal's own listing, so an error page
        here is a fault, not "not found".
        """
        parts = split_code(code)
        if parts is None:
            raise ExtractionError("course_code", f"Malformed course code {code!r}")
        number, section = parts

        doc = extract.parse_document(self.portal.course_summary(term, number, section))
        if extract.has_portal_error(doc):
            raise ExtractionError("summary", f"Portal reported an error for {term}/{code}")

        title, description = extract.extract_summary(doc)
        logger.debug("Scraped %s/%s: %s", term, code, title)
        return CourseSummary(term=term, code=code, title=title, description=description)

    # -----------------------------------------------------------------------
    # Corpus
    # -----------------------------------------------------------------------

    def build_corpus(self) -> Corpus:
        """
        Scrape the title and description of every course of every term.
        """
        terms = self.terms()
        logger.info("Found %d terms: %s", len(terms), ", ".join(t.code for t in terms))

        corpus: Corpus = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            for term in terms:
                codes = self.course_codes(term.code)
                logger.info("Term %s (%s): %d courses", term.code, term.name, len(codes))

                summaries = gather_first_error(pool, lambda c, t=term.code: self.scrape_summary(t, c), codes)
                corpus[term.code] = sorted(summaries, key=lambda s: s.code)

        logger.info("Corpus complete: %d courses", sum(len(v) for v in corpus.values()))
        return corpus

    # -----------------------------------------------------------------------
    # Detail
    # -----------------------------------------------------------------------

    def scrape_detail(self, term: str, code: str) -> Optional[CourseDetail]:
        """
        Scrape the full record of one course section.

        Returns None if the portal does not know the course.
        """
        parts = split_code(code)
        if parts is None:
            return None
        number, section = parts

        main_doc = extract.parse_document(self.portal.course_detail(term, number, section))

        # Server-side error OR the course does not exist
        if extract.has_portal_error(main_doc):
            return None

        data = extract.extract_detail(main_doc)

        inst_doc = extract.parse_document(self.portal.instructors(term, number, section))
        instructors = extract.extract_instructors(inst_doc)

        sections_doc = extract.parse_document(self.portal.other_sections(term, number))
        sections = extract.extract_sections(sections_doc)

        # The detail page has no schedule of its own; take it from our row
        meets = next((s.meets for s in sections if s.code == code), None)
        if meets is None:
            raise ExtractionError("meets", f"No section row for {code} in term {term}")

        return CourseDetail(meets=meets, instructors=instructors, sections=sections, **data)
