"""Batch runner and recurring scheduler."""
