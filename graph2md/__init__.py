"""graph2md — render code-property graphs into per-entity Markdown pages."""

__version__ = "0.3.0"
