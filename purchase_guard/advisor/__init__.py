"""Purchase advisor.

Sends purchase details to an LLM and always returns a usable analysis:
  - Key Pool (API key rotation with health tracking)
  - Completion Client (Cerebras chat completions over httpx)
  - Prompt Builder
  - Response Normalizer (defensive coercion + fixed fallback)
  - Purchase Advisor (one retry on a different key, then fallback)
"""
