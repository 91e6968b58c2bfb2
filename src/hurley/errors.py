class HurleyError(Exception):
    """Base class for every error raised by hurley."""


class DatasetError(HurleyError):
    def __init__(self, message: str):
        super().__init__(f"Dataset error: {message}")


class PlanningError(HurleyError):
    def __init__(self, message: str):
        super().__init__(f"Planning error: {message}")


class ConfigurationError(HurleyError):
    pass


class InvalidMethodError(ConfigurationError):
    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Invalid method: {method!r}")


class InvalidHeaderError(ConfigurationError):
    def __init__(self, header: str):
        self.header = header
        super().__init__(f"Invalid header format: {header!r}")


class RequestError(HurleyError):
    """Transport failure or timeout while executing a single request."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"HTTP request failed: {url}: {reason}")
