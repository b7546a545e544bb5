"""LLM provider gateway.

Everything between a caller-facing operation and the provider HTTP call:
  - Key Rotator (round-robin credentials per provider)
  - Prompt Builder (pure request construction)
  - Vendor Adapters (HTTP dispatch + validated envelope decode)
  - Response Normalizer (fence stripping, JSON parsing)
  - QuizGateway (topics / quiz / weak-area analysis façade)
"""
