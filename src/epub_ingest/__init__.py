"""EPUB ingestion: parse, normalize and paginate EPUB archives into books."""

__version__ = "0.1.0"
