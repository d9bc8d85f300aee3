"""Async client for the remote template store.

Templates live as plain files under a single HTTP origin (by default the
``temp/`` directory of the frb_plugin_tool GitHub repository) and are
addressed by file name.  There is no retry and no cache.

Typical usage::

    fetcher = TemplateFetcher(config.template_origin)
    text = await fetcher.fetch("Cargo.toml")
"""

from __future__ import annotations

import httpx
from rich.markup import escape

from frb_plugin_tool.utils import console


class TransportError(Exception):
    """Raised when a template cannot be retrieved from the template store."""

    def __init__(self, template: str, message: str, cause: Exception | None = None) -> None:
        self.template = template
        self.cause = cause
        super().__init__(f"Failed to fetch template '{template}': {message}")


class TemplateFetcher:
    """Fetches raw template text over HTTP with ``httpx.AsyncClient``."""

    def __init__(self, origin: str, timeout: float | None = None) -> None:
        self.origin = origin.rstrip("/") + "/"
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our timeout."""
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
        )

    def url_for(self, template_name: str) -> str:
        """Return the remote URL for *template_name*."""
        return f"{self.origin}{template_name}"

    async def fetch(self, template_name: str) -> str:
        """Download a template and return it decoded as UTF-8.

        Raises:
            ValueError: If *template_name* is empty.
            TransportError: On connection errors, timeouts, non-2xx status
                codes, or a body that is not valid UTF-8.
        """
        if not template_name:
            raise ValueError("Template name must not be empty.")

        url = self.url_for(template_name)
        console.print(f"  [cyan]Downloading template[/cyan] {escape(url)}")

        try:
            async with self._client() as client:
                response = await client.get(url)
                response.raise_for_status()
                text = response.content.decode("utf-8")
        except httpx.ConnectError as exc:
            raise TransportError(
                template_name, f"cannot connect to {self.origin}", exc
            ) from exc
        except httpx.TimeoutException as exc:
            raise TransportError(
                template_name, f"request timed out after {self.timeout}s", exc
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                template_name, f"HTTP {exc.response.status_code} from {url}", exc
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(template_name, str(exc) or type(exc).__name__, exc) from exc
        except UnicodeDecodeError as exc:
            raise TransportError(template_name, "response body is not valid UTF-8", exc) from exc

        console.print(f"  [green]+[/green] Loaded template {escape(template_name)}")
        return text
