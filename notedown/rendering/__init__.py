"""Rendering pipeline for markdown notes, transport-agnostic.

Contains:
- css_scope: rewrites stylesheets so rules apply only below a root selector
- md_highlight: annotates raw markdown for the live-edit overlay
- plugins: compiles user-authored extension specs into a runtime handle
- renderer: markdown -> sanitized HTML using a runtime handle
- exporter: note-level helpers (scoped stylesheet, standalone page)
"""
