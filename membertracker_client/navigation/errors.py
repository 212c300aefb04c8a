# membertracker_client/navigation/errors.py
class NavigationError(Exception):
    """Base exception for route resolution and navigation failures."""

    def __init__(self, message: str = "Navigation failed."):
        self.message = message
        super().__init__(self.message)


class RouteNotFound(NavigationError):
    """
    Raised when a path does not match any route in the route table.
    """

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No route matches '{path}'.")


class NavigationLoopError(NavigationError):
    """
    Raised when guard redirects keep bouncing without reaching an allowed route.
    """

    def __init__(self, path: str, hops: int):
        self.path = path
        self.hops = hops
        super().__init__(f"Navigation to '{path}' exceeded {hops} redirects.")
