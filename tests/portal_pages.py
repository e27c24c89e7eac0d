"""
Hand-written copies of the portal's page shapes, reduced to the elements
the extractor looks at, plus an in-memory stand-in for PortalClient.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from uwincourses.config import NS
from uwincourses.portal import split_code


ERROR_PAGE = """
<html><body>
  <div class="portlet-msg-error">The course you requested could not be found.</div>
</body></html>
"""


def term_page(options: Sequence[Tuple[str, str]]) -> str:
    opts = "\n".join(f'<option value="{v}">{name}</option>' for v, name in options)
    return f"""
<html><body><form>
  <select name="acadtermCode">
    <option value="">Select a term</option>
    {opts}
  </select>
</form></body></html>
"""


def course_list_page(codes: Iterable[str]) -> str:
    rows = "\n".join(
        f'<tr><td><a href="details?code={c}">{c}</a></td><td>Some title</td></tr>' for c in codes
    )
    return f"""
<html><body>
<div id="{NS}CourseResults">
  <table>
    <thead><tr><th>Course</th><th>Title</th></tr></thead>
    <tbody>{rows}</tbody>
  </table>
</div>
</body></html>
"""


DETAIL_FIELDS = {
    "starts": '<span id="dateSessionStartsFormatted">Sep 6, 2018</span>',
    "ends": '<span id="dateSessionEndsFormatted">Dec 4, 2018</span>',
    "campus": '<span id="courseSectionInfo_campus">Main</span>',
    "availability": '<span id="courseSectionInfo_sectionAvailability">12 of 90 seats left</span>',
    "course_value": '<span id="courseSectionInfo_courseValue">3.00</span>',
    "date_drops_close": '<span id="dateDropsCloseFormatted">Nov 7, 2018</span>',
}


def detail_page(
    title: str = "Discrete Mathematics I",
    description: Sequence[str] = ("Sets, relations and functions.", "Proof techniques."),
    note: Optional[str] = None,
    prereqs: Sequence[str] = (),
    exams: Sequence[Sequence[str]] = (),
    omit: Iterable[str] = (),
) -> str:
    omit = set(omit)
    fields = "\n".join(html for name, html in DETAIL_FIELDS.items() if name not in omit)
    note_html = f'<div class="uwinNoteText">  {note}  </div>' if note else ""
    paras = "\n".join(f"<p>{p}</p>" for p in description)
    title_html = "" if "title" in omit else f"<h1>  {title}\n  </h1>"
    prereq_html = "".join(f"<li>{p}</li>" for p in prereqs)
    exam_rows = "".join("<tr>" + "".join(f"<td>{c}</td>" for c in row) + "</tr>" for row in exams)

    return f"""
<html><body>
{title_html}
<div id="{NS}tabs-details">
  <div>Mon   Wed
        10:00 - 11:20</div>
  {fields}
  {note_html}
  {paras}
</div>
<div id="{NS}tabs-prerequistes"><ul>{prereq_html}</ul></div>
<div id="{NS}tabs-exams">
  <table>
    <tr><th>Type</th><th>Slot</th><th>Date</th><th>Time</th><th>Building</th><th>Room</th><th>Area</th></tr>
    {exam_rows}
  </table>
</div>
</body></html>
"""


def instructors_page(instructors: Sequence[Sequence[str]]) -> str:
    items = []
    for name, *info in instructors:
        spans = "".join(f'<span class="wwctrl">{x}</span>' for x in info)
        items.append(f"<li><b> {name} </b><div><label>Info</label>{spans}</div></li>")
    return f"<html><body><ul>{''.join(items)}</ul></body></html>"


def sections_page(rows: Sequence[Sequence[str]]) -> str:
    """
    rows: (code, title, meets, session, status)
    """
    trs = []
    for code, title, meets, session, status in rows:
        trs.append(
            "<tr>"
            f'<td><a class="uwinPopupLink" href="/sections?code={code}">{code}</a></td>'
            f"<td>{title}</td><td>{meets}</td><td>{session}</td><td>{status}</td>"
            "</tr>"
        )
    return f"""
<html><body>
<div id="{NS}OtherSections">
  <table><tbody>{''.join(trs)}</tbody></table>
</div>
</body></html>
"""


def summary_page(title: str, description: str) -> str:
    return detail_page(title=title, description=(description,))


class FakePortal:
    """
    Serves canned pages keyed like the PortalClient request shapes.

    A page that is an exception instance gets raised instead of returned.
    """

    def __init__(self) -> None:
        self.pages: Dict[tuple, object] = {}
        self.calls: List[tuple] = []

    # helpers for tests ------------------------------------------------------

    def add_term_list(self, options: Sequence[Tuple[str, str]]) -> None:
        self.pages[("terms",)] = term_page(options)

    def add_course(self, term: str, code: str, title: str, description: str) -> None:
        number, section = split_code(code)
        self.pages[("summary", term, number, section)] = summary_page(title, description)

    def set(self, key: tuple, page: object) -> None:
        self.pages[key] = page

    # PortalClient interface -------------------------------------------------

    def _get(self, key: tuple) -> str:
        self.calls.append(key)
        page = self.pages[key]
        if isinstance(page, Exception):
            raise page
        return str(page)

    def term_list(self) -> str:
        return self._get(("terms",))

    def course_list(self, term: str) -> str:
        return self._get(("courses", term))

    def course_summary(self, term: str, number: str, section: str) -> str:
        return self._get(("summary", term, number, section))

    def course_detail(self, term: str, number: str, section: str) -> str:
        return self._get(("detail", term, number, section))

    def instructors(self, term: str, number: str, section: str) -> str:
        return self._get(("instructors", term, number, section))

    def other_sections(self, term: str, number: str) -> str:
        return self._get(("sections", term, number))
