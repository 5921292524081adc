"""Exceptions raised by the BMTC data resolution layer."""


class UpstreamError(Exception):
    """A request to the upstream BMTC API failed or returned an unusable body."""

    def __init__(self, label: str, status_code: int | None = None, message: str = "") -> None:
        self.label = label
        self.status_code = status_code
        self.message = message
        detail = f"HTTP {status_code}" if status_code is not None else "request failed"
        super().__init__(f"{label}: {detail}" + (f" ({message})" if message else ""))

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class RouteNotFoundError(LookupError):
    """Neither the upstream nor the stop index knows any stop for a route id."""

    def __init__(self, route_id: str) -> None:
        self.route_id = route_id
        super().__init__(f"Route details not found: {route_id!r}")
