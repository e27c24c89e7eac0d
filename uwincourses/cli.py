"""
CLI (Command Line Interface).

Terminal front-end to the course index, e.g.:

    uwincourses build
    uwincourses search "discrete math"
    uwincourses search 60-100 --term 20185 --show 1
    uwincourses course 03-60-100-01
    uwincourses rebuild

Exit codes: 0 ok, 1 bad input / not available / internal error.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from uwincourses.config import DEFAULT_TERM, index_dir
from uwincourses.errors import CourseSearchError, QueryError
from uwincourses.index import sort_by_code
from uwincourses.lifecycle import IndexManager
from uwincourses.model import CourseDetail, CoursePreview
from uwincourses.portal import PortalClient
from uwincourses.scrape import Scraper


logger = logging.getLogger("uwincourses")

console = Console()

# Length of the description excerpt shown in the detail view
DESCRIPTION_PREVIEW = 200


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _services(args: argparse.Namespace) -> tuple[Scraper, IndexManager]:
    scraper = Scraper(PortalClient(), max_workers=args.workers)
    manager = IndexManager(args.index_dir, scraper.build_corpus)
    return scraper, manager


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def truncate_description(text: str, limit: int = DESCRIPTION_PREVIEW) -> str:
    return text[:limit] + "..."


def instructor_lines(detail: CourseDetail) -> List[str]:
    """
    One line per instructor, linked to the directory when there is an e-mail.
    """
    lines: List[str] = []
    for ins in detail.instructors:
        url = ins.directory_url
        if url:
            lines.append(f"[link={url}]{escape(ins.name)}[/link] ({url})")
        else:
            lines.append(escape(ins.name))
    return lines


def exam_lines(detail: CourseDetail) -> List[str]:
    lines: List[str] = []
    for ex in detail.exams:
        bits = [f"[bold]{escape(ex.type)}[/]"]
        bits += [escape(x) for x in (ex.date, ex.time) if x]
        lines.append(" ".join(bits))
    return lines


def _print_detail(detail: CourseDetail) -> None:
    console.print(f"\n[bold cyan]{escape(detail.title)}[/]")
    console.print(escape(truncate_description(detail.description)))

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()

    if detail.note:
        table.add_row("Note", escape(detail.note))
    table.add_row("Meets", escape(detail.meets))
    table.add_row("Availability", escape(detail.availability))
    table.add_row("Instructors", "\n".join(instructor_lines(detail)))
    if detail.prereqs:
        table.add_row("Prerequisites", escape("\n".join(detail.prereqs)))
    table.add_row("Exams", "\n".join(exam_lines(detail)))

    console.print(table)


def _print_previews(previews: List[CoursePreview]) -> None:
    for i, p in enumerate(previews, start=1):
        console.print(f"{i:>2}. [bold cyan]{escape(p.code)}[/] | {escape(p.title)}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_build(args: argparse.Namespace) -> int:
    _, manager = _services(args)
    index = manager.open()
    console.print(f"Index ready at {index.path}: {index.num_docs} courses")
    return 0


def _cmd_search(args: argparse.Namespace) -> int:
    """
    Query the index and list the results ordered by course code.
    """
    text = (args.text or "").strip()
    if not text:
        console.print("Please provide a search text.")
        return 1

    scraper, manager = _services(args)
    manager.open()

    try:
        previews = sort_by_code(manager.query(args.term, text, fetch_detail=scraper.scrape_detail))
    except QueryError as exc:
        logger.debug("Rejected query %r: %s", text, exc)
        console.print("Invalid query.")
        return 1

    if not previews:
        console.print("No results.")
        return 0

    _print_previews(previews)

    if args.show is not None:
        if not 1 <= args.show <= len(previews):
            console.print(f"--show must be between 1 and {len(previews)}.")
            return 1
        chosen = previews[args.show - 1]
        detail = chosen.detail()
        if detail is None:
            console.print(f"Course `{chosen.code}` not found.")
            return 0
        _print_detail(detail)

    return 0


def _cmd_course(args: argparse.Namespace) -> int:
    code = (args.code or "").strip()
    if not code:
        console.print("Please provide a course code.")
        return 1

    scraper, _ = _services(args)
    detail = scraper.scrape_detail(args.term, code)
    if detail is None:
        console.print(f"Course `{code}` not found.")
        return 0

    _print_detail(detail)
    return 0


def _cmd_rebuild(args: argparse.Namespace) -> int:
    failures: List[BaseException] = []

    _, manager = _services(args)
    manager.on_error = failures.append

    if not manager.begin_rebuild():
        console.print("A rebuild is already in progress.")
        return 1
    manager.wait()

    if failures:
        console.print("Rebuild failed, see the log for details.")
        return 1

    index = manager.active()
    console.print(f"Index rebuilt: {index.num_docs if index else 0} courses")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="uwincourses", description="UWindsor course search")
    parser.add_argument("--index-dir", type=Path, default=index_dir(), help="Index directory")
    parser.add_argument("--workers", type=int, default=None, help="Parallel scrape workers")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("build", help="Load the index, scraping the portal if there is none yet")

    p_search = sub.add_parser("search", help="Search courses of one term")
    p_search.add_argument("text", type=str, help="Search text")
    p_search.add_argument("--term", "-t", type=str, default=DEFAULT_TERM, help="Term code (e.g. 20185)")
    p_search.add_argument("--show", type=int, default=None, help="Show details of the N-th result")

    p_course = sub.add_parser("course", help="Show the full details of one course")
    p_course.add_argument("code", type=str, help="Course code (e.g. 03-60-100-01)")
    p_course.add_argument("--term", "-t", type=str, default=DEFAULT_TERM, help="Term code (e.g. 20185)")

    sub.add_parser("rebuild", help="Scrape the portal again and replace the index")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    handlers = {
        "build": _cmd_build,
        "search": _cmd_search,
        "course": _cmd_course,
        "rebuild": _cmd_rebuild,
    }

    try:
        code = handlers[args.command](args)
    except CourseSearchError:
        logger.exception("%s failed", args.command)
        console.print("Internal error.")
        code = 1

    raise SystemExit(code)
