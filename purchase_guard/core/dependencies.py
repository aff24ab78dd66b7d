from functools import lru_cache

from purchase_guard.advisor.client import CompletionClient
from purchase_guard.advisor.key_pool import KeyPool
from purchase_guard.advisor.service import PurchaseAdvisor
from purchase_guard.core.config import settings


@lru_cache
def get_advisor() -> PurchaseAdvisor:
    """Process-wide advisor; the key pool's health state is shared by all requests.

    Raises EmptyKeyPoolError when no API key is configured.
    """
    pool = KeyPool(
        settings.api_key_list,
        failure_threshold=settings.key_failure_threshold,
        quarantine_seconds=settings.key_quarantine_seconds,
    )
    client = CompletionClient(
        api_url=settings.cerebras_api_url,
        timeout=settings.cerebras_timeout_seconds,
    )
    return PurchaseAdvisor(pool, client=client)
