"""
llmcat - Concatenate a project's files into a single paste for LLMs.

This package walks a directory tree, selects files using ignore-file rules,
glob patterns and extension lists, and renders their contents as plain text,
fenced Markdown or XML on stdout.
"""

__version__ = "0.2.0"
__author__ = "llmcat Team"
