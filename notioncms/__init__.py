"""
Notion CMS Backend

A FastAPI backend and build tooling for a Notion-driven portfolio site.
Serves published entries as JSON, renders them to static HTML pages, and
maintains their images (durable relocation and AI alt text).
"""

__version__ = "1.0.0"
