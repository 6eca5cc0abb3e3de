"""ProcessLink flow nodes and admin lookups."""

__version__ = "0.1.0"
