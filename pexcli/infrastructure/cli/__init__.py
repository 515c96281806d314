"""Console rendering of results and errors."""
