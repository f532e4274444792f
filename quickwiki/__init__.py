"""quickwiki: LLM-driven wiki generation for source repositories."""

__version__ = "0.1.0"
