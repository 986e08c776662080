"""Custom exceptions for tooldeck.

Provides user-friendly error messages and structured error handling.
Handler errors are never wrapped in these types; they reach the caller
exactly as the tool raised them.
"""

from typing import Optional, Sequence


class ToolDeckError(Exception):
    """Base exception for all tooldeck errors.

    Provides:
    - User-friendly message
    - Technical details for debugging
    - Suggested fixes when applicable
    """

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        suggestion: Optional[str] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.details = details
        self.suggestion = suggestion
        self.cause = cause
        super().__init__(message)

    def format_user_friendly(self) -> str:
        """Format error for display to user."""
        parts = [f"Error: {self.message}"]

        if self.details:
            parts.append(f"   Details: {self.details}")

        if self.suggestion:
            parts.append(f"   Try: {self.suggestion}")

        return "\n".join(parts)

    def __str__(self) -> str:
        return self.message


class ValidationError(ToolDeckError):
    """Input or output schema violation.

    Only field locations and constraint messages are kept. The offending
    value is never stored, since tool inputs routinely carry secrets.
    """

    def __init__(
        self,
        message: str,
        fields: Sequence[str] = (),
        issues: Sequence[str] = (),
        stage: str = "input",
        **kwargs
    ):
        details = kwargs.pop("details", None)
        if not details and issues:
            details = "; ".join(issues)

        super().__init__(message, details=details, **kwargs)
        self.fields = tuple(fields)
        self.issues = tuple(issues)
        self.stage = stage


class HandlerNotImplementedError(ToolDeckError, NotImplementedError):
    """A tool has no handler for the active environment."""

    def __init__(
        self,
        message: str,
        tool_name: Optional[str] = None,
        environment: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", None)
        if not details:
            parts = []
            if tool_name:
                parts.append(f"Tool: {tool_name}")
            if environment:
                parts.append(f"Environment: {environment}")
            if parts:
                details = ", ".join(parts)

        super().__init__(message, details=details, **kwargs)
        self.tool_name = tool_name
        self.environment = environment


class RemoteCallError(ToolDeckError):
    """Non-success response from the privileged execution endpoint."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        **kwargs
    ):
        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            if status_code == 429:
                suggestion = "Rate limited. Wait a few seconds and try again"
            elif status_code in (401, 403):
                suggestion = "Check that the request carries valid credentials"
            elif status_code == 404:
                suggestion = "Check that the tool is registered on the server"

        details = kwargs.pop("details", None)
        if not details and endpoint:
            details = f"Endpoint: {endpoint}"
            if status_code is not None:
                details += f", Status: {status_code}"

        super().__init__(message, details=details, suggestion=suggestion, **kwargs)
        self.status_code = status_code
        self.endpoint = endpoint


class ToolTimeoutError(ToolDeckError, TimeoutError):
    """A tool call lost its race against the clock."""

    def __init__(
        self,
        message: str,
        timeout_seconds: Optional[float] = None,
        **kwargs
    ):
        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            suggestion = "Retry later or raise the tool's timeout"

        details = kwargs.pop("details", None)
        if not details and timeout_seconds:
            details = f"Timeout after {timeout_seconds}s"

        super().__init__(message, details=details, suggestion=suggestion, **kwargs)
        self.timeout_seconds = timeout_seconds


class ToolNotFoundError(ToolDeckError):
    """Lookup of an unregistered tool."""

    def __init__(self, tool_name: str, **kwargs):
        super().__init__(f"Tool not found: {tool_name}", **kwargs)
        self.tool_name = tool_name


class ConfirmationError(ToolDeckError):
    """Invalid human-in-the-loop transition or endpoint mismatch."""

    def __init__(
        self,
        message: str,
        call_id: Optional[str] = None,
        status: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", None)
        if not details and call_id:
            details = f"Call: {call_id}"
            if status:
                details += f", Status: {status}"

        super().__init__(message, details=details, **kwargs)
        self.call_id = call_id
        self.status = status


class RateLimitError(ToolDeckError):
    """Caller exceeded the endpoint's request budget."""

    def __init__(self, message: str = "Rate limit exceeded", identifier: Optional[str] = None, **kwargs):
        suggestion = kwargs.pop("suggestion", None) or "Wait a few seconds and try again"
        super().__init__(message, suggestion=suggestion, **kwargs)
        self.identifier = identifier


def format_exception_chain(error: Exception, max_depth: int = 5) -> str:
    """Format an exception chain for display.

    Handles nested exceptions and provides clean output.
    """
    lines = []
    current = error
    depth = 0

    while current and depth < max_depth:
        if isinstance(current, ToolDeckError):
            lines.append(current.format_user_friendly())
        else:
            lines.append(f"Error: {type(current).__name__}: {current}")

        current = getattr(current, "__cause__", None) or getattr(current, "cause", None)
        depth += 1

        if current:
            lines.append("   Caused by:")

    return "\n".join(lines)
