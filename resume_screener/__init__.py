"""Resume screening: rule-based and AI-backed analysis plus weighted job matching."""

__version__ = "0.1.0"
