"""
Tests for request composition in the portal client.

The HTTP session is replaced by a mock; nothing here touches the network.
"""

import unittest
from unittest import mock

import requests

from uwincourses.config import BASE_QUERY, NS, SEARCH_URL
from uwincourses.errors import TransportError
from uwincourses.portal import ACTION, PortalClient, split_code


def _response(text: str = "<html></html>") -> mock.Mock:
    resp = mock.Mock()
    resp.text = text
    resp.status_code = 200
    resp.raise_for_status.return_value = None
    return resp


class TestSplitCode(unittest.TestCase):
    def test_course_and_section(self) -> None:
        self.assertEqual(split_code("03-60-100-01"), ("0360100", "01"))

    def test_surrounding_whitespace(self) -> None:
        self.assertEqual(split_code(" 03-60-100-01 "), ("0360100", "01"))

    def test_without_section(self) -> None:
        self.assertIsNone(split_code("60100"))
        self.assertIsNone(split_code("-01"))
        self.assertIsNone(split_code("60100-"))


class TestPortalClient(unittest.TestCase):
    def setUp(self) -> None:
        self.session = mock.Mock(spec=requests.Session)
        self.session.get.return_value = _response("<html>page</html>")
        self.session.post.return_value = _response("<html>results</html>")
        self.client = PortalClient(session=self.session, timeout=5)

    def _get_params(self) -> dict:
        args, kwargs = self.session.get.call_args
        self.assertEqual(args[0], SEARCH_URL)
        self.assertEqual(kwargs["timeout"], 5)
        return kwargs["params"]

    def test_term_list_sends_base_query_only(self) -> None:
        self.assertEqual(self.client.term_list(), "<html>page</html>")
        self.assertEqual(self._get_params(), BASE_QUERY)

    def test_course_detail_params(self) -> None:
        self.client.course_detail("20185", "0360100", "01")
        params = self._get_params()
        self.assertEqual(params["p_p_id"], BASE_QUERY["p_p_id"])
        self.assertEqual(params[f"{NS}courseDetailsForm.acadtermCode"], "20185")
        self.assertEqual(params[f"{NS}courseDetailsForm.activityCode"], "0360100")
        self.assertEqual(params[f"{NS}courseDetailsForm.sectionNo"], "01")
        self.assertEqual(params[ACTION], "/courseSearch/viewCourseDetails")

    def test_course_summary_requests_the_detail_page(self) -> None:
        self.client.course_detail("20185", "0360100", "01")
        detail_params = self._get_params()
        self.client.course_summary("20185", "0360100", "01")
        self.assertEqual(self._get_params(), detail_params)

    def test_instructors_action(self) -> None:
        self.client.instructors("20185", "0360100", "01")
        self.assertEqual(self._get_params()[ACTION], "/courseSearch/viewCourseDetailsInstructors")

    def test_other_sections_params(self) -> None:
        self.client.other_sections("20185", "0360100")
        params = self._get_params()
        self.assertEqual(params[ACTION], "/courseSearch/executeFindOtherSections")
        self.assertEqual(params[f"{NS}acadtermCode"], "20185")
        self.assertEqual(params[f"{NS}courseSearchForm.courseNumber"], "0360100")

    def test_course_list_is_a_form_post(self) -> None:
        self.assertEqual(self.client.course_list("20185"), "<html>results</html>")
        self.session.get.assert_not_called()
        _, kwargs = self.session.post.call_args
        self.assertEqual(kwargs["data"]["acadtermCode"], "20185")
        self.assertEqual(kwargs["params"]["p_p_lifecycle"], "1")
        self.assertEqual(kwargs["params"][ACTION], "/courseSearch/ExecuteCourseSearch")

    def test_network_error_becomes_transport_error(self) -> None:
        self.session.get.side_effect = requests.ConnectionError("connection refused")
        with self.assertRaises(TransportError):
            self.client.term_list()

    def test_http_error_becomes_transport_error(self) -> None:
        resp = _response()
        resp.raise_for_status.side_effect = requests.HTTPError("503 Server Error")
        self.session.get.return_value = resp
        with self.assertRaises(TransportError):
            self.client.course_summary("20185", "0360100", "01")

    def test_no_retry(self) -> None:
        self.session.get.side_effect = requests.Timeout("read timed out")
        with self.assertRaises(TransportError):
            self.client.course_detail("20185", "0360100", "01")
        self.assertEqual(self.session.get.call_count, 1)


if __name__ == "__main__":
    unittest.main()
