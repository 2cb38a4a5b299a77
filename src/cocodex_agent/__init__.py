"""
cocodex-agent - a coding assistant that keeps long conversations inside the
model's context window by summarizing older history.
"""

__version__ = "0.1.0"
