"""Submission of URLs to the indexing service."""
