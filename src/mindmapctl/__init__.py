"""mindmapctl — mindmap accounts and document persistence engine."""

__version__ = "0.1.0"
