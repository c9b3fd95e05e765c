"""Candidate discovery: feed reading with a page-scraping fallback."""
