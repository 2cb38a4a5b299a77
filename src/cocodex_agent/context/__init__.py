"""
Project context module.

Discovers cocoagent.md files in the working directory and its parents and
turns them into the first user message of a session.
"""

from .loader import ContextFile, ProjectContextLoader

__all__ = [
    "ContextFile",
    "ProjectContextLoader",
]
