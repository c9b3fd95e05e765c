"""Blog Indexer - submit newly published blog posts to the Google Indexing API."""

__version__ = "0.1.0"
