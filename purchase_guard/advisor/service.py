"""Purchase Advisor: orchestrates key rotation, the model call and normalization.

Main entry point for analyzing a purchase:
  1. Picks an API key from the KeyPool
  2. Builds the prompt
  3. Calls the model once and reports the outcome to the pool
  4. On failure, retries exactly once on a different key
  5. Normalizes the reply, or returns the fixed fallback

Usage:
    advisor = PurchaseAdvisor(KeyPool(["csk-aaa", "csk-bbb"]))
    result = await advisor.analyze_purchase(ProductInfo(name="Widget", price=49.99))

``analyze_purchase`` never raises: callers always get a valid AnalysisResult.
"""

from __future__ import annotations

import logging

from purchase_guard.advisor.client import CompletionClient
from purchase_guard.advisor.key_pool import KeyPool
from purchase_guard.advisor.normalizer import fallback_result, normalize
from purchase_guard.advisor.opportunity_cost import CompoundGrowthCalculator, OpportunityCostCalculator
from purchase_guard.advisor.prompts import build_messages
from purchase_guard.advisor.types import (
    AnalysisRequest,
    AnalysisResult,
    CallStatus,
    CompletionResponse,
    ProductInfo,
    UserProfile,
)
from purchase_guard.core.logging import mask_key
from purchase_guard.core.metrics import ANALYSIS_RESULTS, COMPLETION_CALLS

logger = logging.getLogger(__name__)


class PurchaseAdvisor:
    """Always-answering purchase analysis.

    Integrates:
      - KeyPool: key selection and health tracking
      - CompletionClient: the HTTP call to the model
      - Normalizer: coercion of the reply into an AnalysisResult
      - OpportunityCostCalculator: locally computed opportunity cost
    """

    def __init__(
        self,
        key_pool: KeyPool,
        client: CompletionClient | None = None,
        calculator: OpportunityCostCalculator | None = None,
    ):
        self.key_pool = key_pool
        self.client = client or CompletionClient()
        self.calculator = calculator or CompoundGrowthCalculator()

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        return await self.analyze_purchase(request.product, request.user_profile)

    async def analyze_purchase(
        self,
        product: ProductInfo,
        user_profile: UserProfile | None = None,
    ) -> AnalysisResult:
        """Analyze a purchase. Degrades to the fallback result on any failure."""
        messages = build_messages(product, user_profile)

        first_key = self.key_pool.next_credential()
        response = await self._attempt(first_key, messages)
        if response.ok:
            return self._finish(normalize(response.content, product, self.calculator))

        retry_key = self.key_pool.next_credential()
        if retry_key == first_key:
            logger.warning(
                "No other usable API key after failure on %s, returning fallback",
                mask_key(first_key),
            )
            return self._finish(fallback_result(product, self.calculator))

        logger.info("Retrying analysis of %r on key %s", product.name, mask_key(retry_key))
        response = await self._attempt(retry_key, messages)
        if response.ok:
            return self._finish(normalize(response.content, product, self.calculator))

        logger.warning("Both analysis attempts failed for %r, returning fallback", product.name)
        return self._finish(fallback_result(product, self.calculator))

    async def _attempt(self, api_key: str, messages: list[dict[str, str]]) -> CompletionResponse:
        """One model call on one key; the outcome is reported to the pool."""
        try:
            response = await self.client.complete(api_key, messages)
        except Exception as e:
            logger.exception(
                "Unexpected error calling model with key %s",
                mask_key(api_key),
                extra={"key_id": mask_key(api_key)},
            )
            response = CompletionResponse(
                status=CallStatus.VENDOR_ERROR,
                error_message=f"{type(e).__name__}: {e}",
            )

        COMPLETION_CALLS.labels(status=response.status.value).inc()

        if response.ok:
            self.key_pool.report_success(api_key)
            logger.info(
                "Model call ok on key %s: model=%s latency=%dms tokens=%d/%d",
                mask_key(api_key),
                response.model_version or self.client.model,
                response.latency_ms,
                response.input_tokens,
                response.output_tokens,
                extra={"key_id": mask_key(api_key)},
            )
        else:
            self.key_pool.report_error(api_key)
            logger.warning(
                "Model call failed on key %s after %dms: %s %s %s",
                mask_key(api_key),
                response.latency_ms,
                response.status.value,
                response.error_code,
                response.error_message,
                extra={"key_id": mask_key(api_key)},
            )
        return response

    @staticmethod
    def _finish(result: AnalysisResult) -> AnalysisResult:
        ANALYSIS_RESULTS.labels(source=result.source.value).inc()
        return result

    def get_status(self) -> dict:
        """Key pool health for the status endpoint."""
        return {
            "keys": self.key_pool.get_all_states(),
            "model": self.client.model,
        }
