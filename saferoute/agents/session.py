import logging
import threading
from typing import List, Optional, Tuple

from saferoute.agents.directions import select_route
from saferoute.models import Route, SearchRequest

log = logging.getLogger(__name__)


class SearchSession:
    """
    Current routes and selection for one screen.

    Every search takes a generation token from `begin_search()`. A response
    is only installed by `apply()` while its token is still the newest, so
    an older search that resolves late cannot overwrite a newer one.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._generation = 0
        self.routes: List[Route] = []
        self.selected_index: Optional[int] = None
        self.request: Optional[SearchRequest] = None

    @property
    def generation(self) -> int:
        return self._generation

    def begin_search(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def apply(self, token: int, routes: List[Route], request: Optional[SearchRequest] = None) -> bool:
        with self._lock:
            if token != self._generation:
                log.info("Dropping stale search %d (current %d)", token, self._generation)
                return False
            self.routes = list(routes)
            self.request = request
            self.selected_index = 0 if self.routes else None
            return True

    def fail(self, token: int) -> bool:
        """A failed search still replaces what was on screen: nothing is kept."""
        return self.apply(token, [], None)

    def select(self, index: int) -> Route:
        return self.select_with_request(index)[0]

    def select_with_request(self, index: int) -> Tuple[Route, Optional[SearchRequest]]:
        """The chosen route and the search that produced it, read together."""
        with self._lock:
            route = select_route(self.routes, index)
            self.selected_index = index
            return route, self.request

    @property
    def selected(self) -> Optional[Route]:
        with self._lock:
            if self.selected_index is None:
                return None
            return self.routes[self.selected_index]
