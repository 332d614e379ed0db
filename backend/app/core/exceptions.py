"""Custom exception classes for the application."""


class CatalogException(Exception):
    """Base exception for all catalog errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(CatalogException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' not found")


class AdapterError(CatalogException):
    """Raised when crawling a retailer fails.

    Every subclass is fatal to its unit of work: the crawl session of a
    retailer, or the single product being expanded by the variant resolver.
    Nothing is retried.
    """

    def __init__(self, retailer: str, message: str):
        self.retailer = retailer
        super().__init__(f"{retailer}: {message}")


class TransportError(AdapterError):
    """Network failure, timeout or an unbuildable request."""


class ParseError(AdapterError):
    """Expected markup or JSON element is missing from a response."""


class ShapeError(AdapterError):
    """Response is structurally valid but semantically unexpected."""


class NumericError(AdapterError):
    """A price or number string could not be parsed."""
