"""
Reminder agent: an LLM agent that answers questions about your tasks through a
stdio JSON-RPC tool server backed by a JSON document.
"""

__version__ = "1.0.0"
