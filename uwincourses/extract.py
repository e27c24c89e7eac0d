"""
Extraction (portal HTML -> structured fields).

Every field lives at a fixed, hand-mapped selector path inside one of the
portal's pages. The paths are collected in FIELDS and in the *_ROWS / *_ITEMS
constants below; when the portal markup changes, only those need updating.

Rules:
- A field's text is the whitespace-normalized join of its descendant text nodes
- Missing required field -> ExtractionError(field)
- Missing optional field -> None
- A page with the portal error marker means "entity not found"; callers check
  has_portal_error() before extracting anything
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from uwincourses.config import NS
from uwincourses.errors import ExtractionError
from uwincourses.model import Exam, Instructor, Section, Term


def _by_id(name: str) -> str:
    return f"[id='{NS}{name}']"


# ---------------------------------------------------------------------------
# Selector table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldSpec:
    """
    Where a field lives on a page.

    selector: path to the container element (first match wins)
    text:     optional selector inside the container; when set, the text of
              every matching element is joined instead of the container's own
    """

    selector: str
    text: Optional[str] = None
    required: bool = True


DETAILS = _by_id("tabs-details")

FIELDS: Dict[str, FieldSpec] = {
    "title": FieldSpec("h1"),
    "meets_description": FieldSpec(f"{DETAILS} div"),
    "starts": FieldSpec(f"{DETAILS} #dateSessionStartsFormatted"),
    "ends": FieldSpec(f"{DETAILS} #dateSessionEndsFormatted"),
    "campus": FieldSpec(f"{DETAILS} #courseSectionInfo_campus"),
    "availability": FieldSpec(f"{DETAILS} #courseSectionInfo_sectionAvailability"),
    "course_value": FieldSpec(f"{DETAILS} #courseSectionInfo_courseValue"),
    "date_drops_close": FieldSpec(f"{DETAILS} #dateDropsCloseFormatted"),
    "description": FieldSpec(DETAILS, text="p"),
    "note": FieldSpec(f"{DETAILS} .uwinNoteText", required=False),
}

PORTAL_ERROR = ".portlet-msg-error"

TERM_OPTIONS = "select[name='acadtermCode'] option"
COURSE_RESULTS = _by_id("CourseResults")
COURSE_ROWS = "tbody tr"

# The portal spells the tab id this way
PREREQ_ITEMS = f"{_by_id('tabs-prerequistes')} li"
EXAM_ROWS = f"{_by_id('tabs-exams')} tr"

INSTRUCTOR_ITEMS = "ul li"
INSTRUCTOR_NAME = "b"
INSTRUCTOR_INFO = "div .wwctrl"

SECTION_ROWS = f"{_by_id('OtherSections')} > table > tbody > tr"
SECTION_LINK = ".uwinPopupLink"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def normalize_text(node: Tag) -> str:
    """
    Join all descendant text nodes, collapsing runs of whitespace.

    The portal sometimes puts line breaks and indentation in the middle of
    a value ("Mon  \n  Wed 10:00").
    """
    return " ".join(node.get_text(" ").split())


def _optional(text: str) -> Optional[str]:
    return text if text else None


def has_portal_error(doc: BeautifulSoup) -> bool:
    return doc.select_one(PORTAL_ERROR) is not None


def extract_field(doc: Tag, name: str) -> Optional[str]:
    """
    Look up `name` in FIELDS and return its text.
    """
    spec = FIELDS[name]
    container = doc.select_one(spec.selector)
    if container is None:
        if spec.required:
            raise ExtractionError(name)
        return None

    if spec.text is None:
        return normalize_text(container)

    parts = [normalize_text(node) for node in container.select(spec.text)]
    return " ".join(p for p in parts if p)


def _required(doc: Tag, name: str) -> str:
    value = extract_field(doc, name)
    if value is None:
        raise ExtractionError(name)
    return value


# ---------------------------------------------------------------------------
# Search pages
# ---------------------------------------------------------------------------


def extract_terms(doc: BeautifulSoup) -> List[Term]:
    """
    Read the academic terms offered in the search form's term selector.

    Options without a value are placeholders ("Select a term") and skipped.
    A page that offers no term at all is not a search form.
    """
    terms: List[Term] = []
    seen: set[str] = set()

    for option in doc.select(TERM_OPTIONS):
        code = (option.get("value") or "").strip()
        if not code:
            continue

        name = normalize_text(option)
        if not name:
            raise ExtractionError("terms", f"Term {code!r} has no display name")

        if code in seen:
            continue
        seen.add(code)
        terms.append(Term(code=code, name=name))

    if not terms:
        raise ExtractionError("terms", "No term selector on the search page")
    return terms


def extract_course_codes(doc: BeautifulSoup) -> List[str]:
    """
    Read the course+section codes (e.g. 03-60-100-01) of a course search result.

    A term without courses still has the results container; a page without
    it is not a search result. Repeated rows collapse into the first one.
    """
    results = doc.select_one(COURSE_RESULTS)
    if results is None:
        raise ExtractionError("course_list")

    codes: List[str] = []
    seen: set[str] = set()

    for row in results.select(COURSE_ROWS):
        cell = row.find("td")
        link = cell.find("a") if cell else None
        code = normalize_text(link) if link else ""
        if not code:
            raise ExtractionError("course_code")

        if code in seen:
            continue
        seen.add(code)
        codes.append(code)

    return codes


# ---------------------------------------------------------------------------
# Course pages
# ---------------------------------------------------------------------------


def extract_summary(doc: BeautifulSoup) -> Tuple[str, str]:
    """
    Title and description, the two fields that get indexed.
    """
    return _required(doc, "title"), _required(doc, "description")


def _extract_exam(row: Tag) -> Exam:
    columns = [normalize_text(td) for td in row.find_all("td")]
    if not columns or not columns[0]:
        raise ExtractionError("exams")

    # Pad so that missing trailing cells become None
    columns += [""] * (7 - len(columns))
    return Exam(
        type=columns[0],
        slot=_optional(columns[1]),
        date=_optional(columns[2]),
        time=_optional(columns[3]),
        building=_optional(columns[4]),
        room=_optional(columns[5]),
        area=_optional(columns[6]),
    )


def extract_detail(doc: BeautifulSoup) -> Dict[str, Any]:
    """
    Parse the main course detail page.

    Returns a dict keyed like the CourseDetail fields it covers; meets,
    instructors and sections come from other pages.
    """
    data: Dict[str, Any] = {}

    for name in FIELDS:
        data[name] = extract_field(doc, name)

    data["prereqs"] = [normalize_text(li) for li in doc.select(PREREQ_ITEMS)]

    # First row of the exam table is the header
    data["exams"] = [_extract_exam(row) for row in doc.select(EXAM_ROWS)[1:]]

    return data


def extract_instructors(doc: BeautifulSoup) -> List[Instructor]:
    """
    Parse the instructor tab: a name in bold followed by up to four
    labelled values (title, department, phone, e-mail).
    """
    instructors: List[Instructor] = []

    for item in doc.select(INSTRUCTOR_ITEMS):
        name_el = item.select_one(INSTRUCTOR_NAME)
        name = normalize_text(name_el) if name_el else ""
        if not name:
            raise ExtractionError("instructors")

        info = [_optional(normalize_text(el)) for el in item.select(INSTRUCTOR_INFO)]
        info += [None] * (4 - len(info))

        instructors.append(
            Instructor(
                name=name,
                title=info[0],
                department=info[1],
                phone=info[2],
                email=info[3],
            )
        )

    return instructors


def extract_sections(doc: BeautifulSoup) -> List[Section]:
    sections: List[Section] = []

    for row in doc.select(SECTION_ROWS):
        cells = row.find_all("td", recursive=False)
        if len(cells) < 5:
            raise ExtractionError("sections")

        link = cells[0].select_one(SECTION_LINK)
        if link is None or not link.get("href"):
            raise ExtractionError("sections")

        code = normalize_text(link)
        if not code:
            raise ExtractionError("sections")

        title, meets, session, status = (normalize_text(td) for td in cells[1:5])
        sections.append(
            Section(
                url=str(link["href"]),
                code=code,
                title=title,
                meets=meets,
                session=session,
                status=status,
            )
        )

    return sections
