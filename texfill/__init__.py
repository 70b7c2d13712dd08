"""TexFill: LaTeX template field extraction and PDF generation service."""

__version__ = "0.1.0"
