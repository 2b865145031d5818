"""Dated markdown content to styled HTML fragments and an Atom feed."""
