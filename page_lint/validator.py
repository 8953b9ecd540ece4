"""Nu Html Checker client.

Usage:
    validator = NuValidatorClient(url="https://validator.w3.org/nu/")
    warnings  = validator.check("http://localhost:3456/")

The page is fetched locally and its markup is posted to the checker, so
pages served from localhost can be validated by a remote checker.
"""

from dataclasses import dataclass

import requests

DEFAULT_VALIDATOR_URL = "https://validator.w3.org/nu/"
USER_AGENT = "page-lint"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ValidatorError(Exception):
    """Base exception for all validator errors."""


class NetworkError(ValidatorError):
    """Raised on connection timeout or unreachable server."""


class ValidatorResponseError(ValidatorError):
    """Raised on a non-2xx or unreadable response."""


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValidationWarning:
    message: str
    first_line: int | None = None
    last_line: int | None = None
    first_column: int | None = None
    last_column: int | None = None


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class NuValidatorClient:
    """Thin wrapper around the Nu Html Checker web service."""

    def __init__(self, url: str = DEFAULT_VALIDATOR_URL, timeout: int = 30) -> None:
        self.base_url = url
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers["User-Agent"] = USER_AGENT

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def check(self, page_url: str) -> list[ValidationWarning]:
        """Validate the document at *page_url* and return its warnings.

        Errors and warnings are returned in checker order; purely
        informational messages are dropped.

        Raises:
            NetworkError:           Timeout or connection failure
            ValidatorResponseError: Non-2xx response or invalid JSON from the checker
        """
        document = self._fetch_document(page_url)
        data = self._post_document(document)

        messages = data.get("messages", [])
        return [_to_warning(m) for m in messages if _is_reported(m)]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _fetch_document(self, page_url: str) -> bytes:
        # Error pages are validated too; their status is reported by the caller.
        response = self._send("GET", page_url, check_status=False)
        return response.content

    def _post_document(self, document: bytes) -> dict:
        response = self._send(
            "POST",
            self.base_url,
            params={"out": "json"},
            data=document,
            headers={"Content-Type": "text/html; charset=utf-8"},
        )
        try:
            return response.json()
        except ValueError as exc:
            raise ValidatorResponseError(
                f"Validator at '{self.base_url}' did not return JSON"
            ) from exc

    def _send(self, method: str, url: str, check_status: bool = True, **kwargs) -> requests.Response:
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.exceptions.Timeout as exc:
            raise NetworkError(
                f"Request timed out after {self._timeout}s while contacting '{url}'"
            ) from exc
        except requests.exceptions.ConnectionError as exc:
            raise NetworkError(f"Unable to reach '{url}'") from exc

        if check_status and not response.ok:
            raise ValidatorResponseError(
                f"Unexpected response {response.status_code} from {url}: {response.text[:200]}"
            )
        return response


def _is_reported(message: dict) -> bool:
    kind = message.get("type")
    return kind == "error" or (kind == "info" and message.get("subType") == "warning")


def _to_warning(message: dict) -> ValidationWarning:
    return ValidationWarning(
        message=str(message.get("message", "")).strip(),
        first_line=message.get("firstLine"),
        last_line=message.get("lastLine"),
        first_column=message.get("firstColumn"),
        last_column=message.get("lastColumn"),
    )
