"""
Portal client: the fixed set of requests sent to the course search portlet.

Every call merges BASE_QUERY with its own parameters and returns the raw
HTML. No retries and no caching: every call hits the network and the first
failure is raised as TransportError.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional, Tuple

import requests

from uwincourses.config import BASE_QUERY, NS, REQUEST_TIMEOUT, SEARCH_URL
from uwincourses.errors import TransportError


logger = logging.getLogger(__name__)

ACTION = f"{NS}struts.portlet.action"
DETAILS_FORM = f"{NS}courseDetailsForm"


def split_code(code: str) -> Optional[Tuple[str, str]]:
    """
    Split a course+section code into the portal's course number and section.

        "03-60-100-01" -> ("0360100", "01")

    Returns None when the code carries no section part.
    """
    number, sep, section = code.strip().rpartition("-")
    if not sep or not number or not section:
        return None
    return number.replace("-", ""), section


class PortalClient:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        url: str = SEARCH_URL,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.session = session or requests.Session()
        self.url = url
        self.timeout = timeout

    def fetch(self, params: Mapping[str, str], form: Optional[Mapping[str, str]] = None) -> str:
        """
        Send one request and return the response body.

        A form turns the request into a POST.
        """
        query: Dict[str, str] = dict(BASE_QUERY)
        query.update(params)

        try:
            if form is None:
                resp = self.session.get(self.url, params=query, timeout=self.timeout)
            else:
                resp = self.session.post(self.url, params=query, data=dict(form), timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(f"Request to {self.url} failed: {exc}") from exc

        logger.debug(
            "%s %s -> %s",
            "GET" if form is None else "POST",
            query.get(ACTION, "(search form)"),
            resp.status_code,
        )
        return resp.text

    # -----------------------------------------------------------------------
    # Request shapes
    # -----------------------------------------------------------------------

    def term_list(self) -> str:
        """
        The search form itself; its term selector lists the open terms.
        """
        return self.fetch({})

    def course_list(self, term: str) -> str:
        """
        Run an unrestricted course search for one term.
        """
        params = {
            "p_p_lifecycle": "1",
            "p_p_state": "normal",
            f"{NS}templateDir": "template",
            f"{NS}theme": "css_xhtml",
            f"{NS}dynamicAttributes": "{}",
            ACTION: "/courseSearch/ExecuteCourseSearch",
        }
        form = {
            "acadtermCode": term,
            "advancedSearch": "false",
            "courseSearchForm.acadLevel": "",
            "courseSearchForm.courseNumber": "",
            "courseSearchForm.searchBy": "Course",
            "courseSearchForm.subject": " ",
        }
        return self.fetch(params, form)

    def _details_params(self, term: str, number: str, section: str, action: str) -> Dict[str, str]:
        return {
            f"{DETAILS_FORM}.acadtermCode": term,
            f"{DETAILS_FORM}.activityCode": number,
            f"{DETAILS_FORM}.sectionNo": section,
            ACTION: action,
        }

    def course_detail(self, term: str, number: str, section: str) -> str:
        return self.fetch(self._details_params(term, number, section, "/courseSearch/viewCourseDetails"))

    def course_summary(self, term: str, number: str, section: str) -> str:
        """
        Same page as course_detail: title and description live on its first tab.
        """
        return self.course_detail(term, number, section)

    def instructors(self, term: str, number: str, section: str) -> str:
        return self.fetch(
            self._details_params(term, number, section, "/courseSearch/viewCourseDetailsInstructors")
        )

    def other_sections(self, term: str, number: str) -> str:
        params = {
            ACTION: "/courseSearch/executeFindOtherSections",
            f"{NS}acadtermCode": term,
            f"{NS}courseSearchForm.courseNumber": number,
        }
        return self.fetch(params)
