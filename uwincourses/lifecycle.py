"""
Index lifecycle: owns the active index snapshot.

    ABSENT -> BUILDING -> READY -> REBUILDING -> READY

A background build started while no snapshot is active reports BUILDING.

- open() loads the persisted index, or scrapes and builds it when the
  directory does not exist yet
- begin_rebuild() scrapes a fresh corpus in the background while the old
  snapshot keeps serving, then swaps the new one in
- readers call active() once per request and keep using that snapshot;
  None means "temporarily unavailable", not an error

New indexes are always written into a staging directory next to the real
one and moved into place only after the commit, so an aborted build never
leaves a half-written index where open() would pick it up.
"""

from __future__ import annotations

import enum
import logging
import shutil
import threading
from pathlib import Path
from typing import Callable, List, Optional

from uwincourses.errors import InternalError
from uwincourses.index import CourseIndex
from uwincourses.model import Corpus, CoursePreview, DetailFetcher


logger = logging.getLogger(__name__)


class IndexState(enum.Enum):
    ABSENT = "absent"
    BUILDING = "building"
    READY = "ready"
    REBUILDING = "rebuilding"


class IndexManager:
    def __init__(
        self,
        path: str | Path,
        build_corpus: Callable[[], Corpus],
        on_error: Optional[Callable[[BaseException], None]] = None,
    ) -> None:
        self.path = Path(path)
        self.build_corpus = build_corpus
        self.on_error = on_error

        self._lock = threading.Lock()
        self._active: Optional[CourseIndex] = None
        self._state = IndexState.ABSENT
        self._rebuild_thread: Optional[threading.Thread] = None

    @property
    def staging_path(self) -> Path:
        return self.path.with_name(self.path.name + ".building")

    @property
    def state(self) -> IndexState:
        with self._lock:
            return self._state

    def active(self) -> Optional[CourseIndex]:
        with self._lock:
            return self._active

    # -----------------------------------------------------------------------
    # Startup
    # -----------------------------------------------------------------------

    def open(self) -> CourseIndex:
        """
        Load the persisted index, or build it from a fresh scrape.

        Any failure propagates; there is nothing to serve without an index.
        """
        if self.path.is_dir():
            logger.info("Loading index from %s", self.path)
            index = CourseIndex.open(self.path)
        else:
            logger.info("No index at %s, scraping the portal", self.path)
            with self._lock:
                self._state = IndexState.BUILDING
            try:
                index = self._build()
            except BaseException:
                with self._lock:
                    self._state = IndexState.ABSENT
                raise

        with self._lock:
            self._active = index
            self._state = IndexState.READY
        logger.info("Index ready: %d courses", index.num_docs)
        return index

    def _build(self) -> CourseIndex:
        """
        Scrape, commit into the staging directory, move it into place.
        """
        staging = self.staging_path
        _remove_tree(staging)

        corpus = self.build_corpus()
        try:
            CourseIndex.create(staging, corpus)
            _remove_tree(self.path)
            staging.rename(self.path)
        except OSError as exc:
            raise InternalError(f"Could not install index at {self.path}: {exc}") from exc
        finally:
            _remove_tree(staging)

        return CourseIndex.open(self.path)

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def query(self, term: str, text: str, fetch_detail: Optional[DetailFetcher] = None) -> List[CoursePreview]:
        """
        Query the active snapshot; no results while none is active.
        """
        index = self.active()
        if index is None:
            return []
        return index.query(term, text, fetch_detail=fetch_detail)

    # -----------------------------------------------------------------------
    # Rebuild
    # -----------------------------------------------------------------------

    def begin_rebuild(self) -> bool:
        """
        Start a background rebuild. Returns False if one is already running.
        """
        with self._lock:
            if self._rebuild_thread is not None:
                return False
            # Nothing to keep serving: this is a first build, not a rebuild
            self._state = IndexState.REBUILDING if self._active is not None else IndexState.BUILDING
            self._rebuild_thread = threading.Thread(target=self._rebuild, name="index-rebuild", daemon=True)
            thread = self._rebuild_thread

        thread.start()
        return True

    def wait(self, timeout: Optional[float] = None) -> None:
        """
        Block until the running rebuild (if any) has finished.
        """
        with self._lock:
            thread = self._rebuild_thread
        if thread is not None:
            thread.join(timeout)

    def _rebuild(self) -> None:
        try:
            logger.info("Rebuilding index at %s", self.path)
            staging = self.staging_path
            _remove_tree(staging)

            corpus = self.build_corpus()
            CourseIndex.create(staging, corpus)

            # Swap point: readers see either the old snapshot or nothing
            # until the new one is published.
            with self._lock:
                self._active = None
                self._state = IndexState.BUILDING
                try:
                    _remove_tree(self.path)
                    staging.rename(self.path)
                except OSError as exc:
                    raise InternalError(f"Could not install index at {self.path}: {exc}") from exc
                index = CourseIndex.open(self.path)
                self._active = index
                self._state = IndexState.READY

            logger.info("Rebuild finished: %d courses", index.num_docs)
        except Exception as exc:
            logger.exception("Index rebuild failed")
            with self._lock:
                self._active = None
                self._state = IndexState.ABSENT
            _remove_tree(self.staging_path)
            if self.on_error is not None:
                self.on_error(exc)
        finally:
            with self._lock:
                self._rebuild_thread = None


def _remove_tree(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)
