"""Cached flash sale listing and detail pages."""
