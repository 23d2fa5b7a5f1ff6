"""Bundle buildpack and extension files, inspect packaged extensions, and summarize them as Markdown or JSON."""

__version__ = "2.0.0"