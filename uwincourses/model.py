"""
Central data model definitions used across the project.

This module defines the canonical structure of the scraped records so that:
- the extractor, the scraper and the index share the same field names
- query results stay plain records that can be re-resolved later
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from uwincourses.config import DIRECTORY_SERVICES


@dataclass(frozen=True)
class Term:
    """
    One academic session as echoed back by the portal, e.g. 20185 / "Fall 2018".
    """

    code: str
    name: str


@dataclass(frozen=True)
class CourseSummary:
    """
    The indexed unit: one course section of one term.
    """

    term: str
    code: str
    title: str
    description: str


# term code -> summaries of that term
Corpus = Dict[str, List[CourseSummary]]


@dataclass
class Exam:
    type: str
    slot: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    building: Optional[str] = None
    room: Optional[str] = None
    area: Optional[str] = None


@dataclass
class Instructor:
    name: str
    title: Optional[str] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    @property
    def directory_url(self) -> Optional[str]:
        if not self.email:
            return None
        local = self.email.split("@", 1)[0].strip()
        return f"{DIRECTORY_SERVICES}{local}" if local else None


@dataclass
class Section:
    """
    One row of the "other sections" listing of a course.
    """

    url: str
    code: str
    title: str
    meets: str
    session: str
    status: str


@dataclass
class CourseDetail:
    """
    Full record of one course section, fetched on demand and never stored.
    """

    title: str
    meets_description: str
    meets: str
    starts: str
    ends: str
    campus: str
    availability: str
    course_value: str
    date_drops_close: str
    description: str
    note: Optional[str] = None
    prereqs: List[str] = field(default_factory=list)
    exams: List[Exam] = field(default_factory=list)
    instructors: List[Instructor] = field(default_factory=list)
    sections: List[Section] = field(default_factory=list)


DetailFetcher = Callable[[str, str], Optional[CourseDetail]]


@dataclass(frozen=True)
class CoursePreview:
    """
    Represents one search hit.

    Carries term and code so the full detail can be scraped again without
    going back to the index it was read from.
    """

    term: str
    code: str
    title: str
    fetch_detail: Optional[DetailFetcher] = field(default=None, repr=False, compare=False)

    def detail(self) -> Optional[CourseDetail]:
        if self.fetch_detail is None:
            raise RuntimeError("preview has no detail fetcher attached")
        return self.fetch_detail(self.term, self.code)
