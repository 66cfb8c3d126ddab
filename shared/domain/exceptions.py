"""
Domain Exceptions

Base class for errors raised by domain code. Each error carries a stable
machine-readable ``code`` and the HTTP status the API layer answers with,
so the transport boundary can translate them without knowing every type.
"""


class DomainError(Exception):
    """Base exception for expected, reportable domain failures"""

    code = 'domain_error'
    status_code = 400
    default_message = 'Request could not be processed.'

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message
