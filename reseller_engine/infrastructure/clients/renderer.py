"""Document renderer webhook client with exponential backoff retry logic"""

import httpx
import asyncio
from typing import Dict, Any
from reseller_engine.config import settings
from reseller_engine.domain.exceptions import DocumentRenderError
from reseller_engine.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter


class RendererClient:
    """Client handing settlements to the quote/invoice rendering service"""

    def __init__(self, webhook_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.webhook_url = webhook_url or settings.renderer_webhook_url
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base
        self.timeout = settings.http_timeout_seconds
        self.transport = transport

    async def send_document(self, payload: Dict[str, Any]) -> None:
        """
        Send a quote or invoice to the renderer with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^attempt)
        - Retries on 5xx/4xx responses and network failures
        - Tracks latency histogram and failure counter

        Raises:
            DocumentRenderError: Renderer did not accept the document after all retries
        """
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return  # Success

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        raise DocumentRenderError(
                            f"Renderer rejected document after {attempt} attempts: {e}"
                        ) from e

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
