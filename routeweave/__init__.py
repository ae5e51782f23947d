"""Routeweave: React Router to Next.js project converter."""

__version__ = "0.1.0"
