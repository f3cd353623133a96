"""
Completion clients.

- client.py: OpenAI-compatible chat completions (OpenAI, LM Studio, ...)
- offline.py: deterministic stand-in used when no LLM is configured
"""
