import requests
from typing import Callable

from reviewcrawl.domain.http_response import HttpResponse
from reviewcrawl.exceptions import HttpFetchError


class HttpService:
    """
    HTTP client wrapper for fetching web pages.

    Requires http_client callable for dependency injection.
    This enables easy testing without patching and allows swapping HTTP libraries.
    """

    def __init__(self, user_agent: str, http_client: Callable, timeout: float = 10, follow_redirects: bool = True):
        self.user_agent = user_agent
        self.timeout = timeout
        self.follow_redirects = follow_redirects
        self.http_client = http_client

    def fetch(self, url: str) -> HttpResponse:
        """Fetch URL and return response with status code, body text, Content-Type and final URL.

        Transport errors and non-2xx statuses both raise HttpFetchError so the
        retry policy treats them alike.
        """
        headers = {"User-Agent": self.user_agent}
        try:
            resp = self.http_client(url, headers=headers, timeout=self.timeout, allow_redirects=self.follow_redirects)
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(url, e) from e

        if resp.status_code < 200 or resp.status_code >= 300:
            raise HttpFetchError(url, status_code=resp.status_code)

        # Extract Content-Type if response has headers; let real exceptions bubble up.
        ct = None
        if hasattr(resp, 'headers'):
            ct = resp.headers.get('Content-Type')

        final_url = getattr(resp, 'url', None)
        if not isinstance(final_url, str) or not final_url:
            final_url = url

        return HttpResponse(resp.status_code, resp.text, ct, final_url)
