"""musicdb: versioned music track store with a filtered, paginated listing API."""

__version__ = "1.0.0"
