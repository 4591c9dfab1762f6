"""
Forwards completed results to an external webhook
"""
import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class WebhookNotifier:
    """POSTs a JSON payload; failures are logged and never reach the caller"""

    def __init__(self, url: str, timeout: float = 30.0, client: Optional[httpx.Client] = None):
        self.url = url
        self.timeout = timeout
        self._client = client

    def notify(self, payload: dict) -> bool:
        try:
            if self._client is not None:
                response = self._client.post(self.url, json=payload, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"[Webhook] {self.url} answered {e.response.status_code}")
            return False
        except httpx.RequestError as e:
            logger.warning(f"[Webhook] could not reach {self.url}: {e}")
            return False

        logger.info(f"[Webhook] result delivered to {self.url}")
        return True
