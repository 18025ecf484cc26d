"""
relay.py

Outbound test webhooks: POST an arbitrary JSON payload to a URL and report the response verbatim.

No retries. Upstream HTTP error statuses (4xx/5xx) are reported back like any other
response; only transport failures (DNS, connect, timeout, bad URL) raise.
"""

from typing import Any, Dict, Optional

import httpx

from errors import InvalidInput, UpstreamError

DEFAULT_TIMEOUT_SECONDS = 10.0


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def send_webhook(url: Any, payload: Any = None, timeout: Optional[float] = None) -> Dict[str, Any]:
    if not url:
        raise InvalidInput("Missing target URL")

    # Anything else goes to the client as-is; unusable URLs fail there as UpstreamError.
    target = url if isinstance(url, str) else str(url)
    try:
        response = httpx.post(
            target,
            json=payload if payload is not None else {},
            headers={"Content-Type": "application/json"},
            timeout=timeout if timeout is not None else DEFAULT_TIMEOUT_SECONDS,
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        print(f"[webhook-send] url={target} failed: {e!r}")
        raise UpstreamError(str(e) or e.__class__.__name__) from e

    print(f"[webhook-send] url={target} status={response.status_code}")
    return {
        "status": response.status_code,
        "statusText": response.reason_phrase,
        "body": _decode_body(response),
    }
