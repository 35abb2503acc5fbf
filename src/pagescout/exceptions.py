"""Custom exceptions for pagescout."""


class PageScoutError(Exception):
    """Base class for all pagescout exceptions."""

    pass


class ConfigurationError(PageScoutError):
    """Raised when required configuration (API key, provider) is missing or invalid."""

    pass


class OracleError(PageScoutError):
    """Base class for failures of the reasoning oracle."""

    pass


class OracleFormatError(OracleError):
    """Raised when the oracle response holds no parseable JSON object."""

    def __init__(self, message: str, raw_text: str = ''):
        """Initialize the format error.

        Args:
            message: Human-readable description of the failure
            raw_text: The raw text the oracle returned

        """
        self.raw_text = raw_text
        super().__init__(message)


class SchemeValidationError(OracleFormatError):
    """Raised when oracle JSON parses but violates the expected model."""

    pass


class OracleTimeoutError(OracleError):
    """Raised when the oracle does not answer within the configured bound."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f'Reasoning oracle did not respond within {timeout:g}s')


class OracleUnavailableError(OracleError):
    """Raised when the provider keeps failing after every retry."""

    def __init__(self, status_code: int, reason: str):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f'Reasoning oracle unavailable (HTTP {status_code}): {reason}')


class BrowserLaunchError(PageScoutError):
    """Raised when the headless browser cannot be started."""

    pass


class NavigationError(PageScoutError):
    """Raised when a page fails to load within the navigation bound."""

    def __init__(self, url: str, reason: str):
        """Initialize navigation error.

        Args:
            url: URL that failed to load
            reason: Why the navigation failed (timeout, network error)

        """
        self.url = url
        self.reason = reason
        super().__init__(f'Failed to load {url}: {reason}')


class EvaluationTimeoutError(PageScoutError):
    """Raised when a query over the rendered page exceeds the evaluation bound."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f'Page evaluation did not finish within {timeout:g}s')


class SelectorEvaluationError(PageScoutError):
    """Raised when a single CSS selector is invalid or cannot be evaluated.

    Always recovered locally: the failure is recorded in the attempt's
    debug info and extraction continues with the remaining selectors.
    """

    def __init__(self, selector: str, reason: str):
        self.selector = selector
        self.reason = reason
        super().__init__(f"Selector '{selector}' failed: {reason}")


class ExportDataEmpty(PageScoutError):
    """Raised when bulk extraction for export yields zero records."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f'No data found for export at {url}')
