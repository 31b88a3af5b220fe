"""bdcinema backend: catalog store, Meter rating aggregation and TMDB gateway."""

__version__ = "1.0.0"
