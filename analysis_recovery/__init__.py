"""Recovery of structured analysis records from raw LLM output."""

__version__ = "0.1.0"
