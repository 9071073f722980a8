"""
NewsDesk Ingestion Module
=========================

Feed item signal extraction.

This module handles:
- Typed views over raw feed items
- Image, content and category signal extraction
- Markup stripping for rich content
"""
