"""Exceptions raised by the region filtering and counting pipeline."""


class QuakeRegionsError(Exception):
    """Base class for every error raised by quake_regions."""


class ConfigurationError(QuakeRegionsError):
    """Missing or mismatched CRS, missing required fields, bad settings."""


class GeometryError(QuakeRegionsError):
    """Malformed, empty or out-of-range geometry."""


class ReferentialIntegrityError(QuakeRegionsError):
    """A count references a region that is not in the region catalog."""
