"""Upload PDFs and chat about the page being viewed."""

__version__ = "0.1.0"
