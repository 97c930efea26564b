"""Report Store fetchers."""
