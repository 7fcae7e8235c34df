"""
CLI package for the document field extractor.

This package provides the command-line interface for extracting fields from
documents, inspecting reconstructed lines, and showing configuration.
"""

from .version import __version__
