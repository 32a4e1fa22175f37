from __future__ import annotations


class StatusError(Exception):
    """
    Base class for every failure that aborts a status scrape.

    The exporter catches this family and reports the scrape as failed
    (openvpn_up = 0). Samples produced before the failure are kept.
    """


class StatusFormatError(StatusError):
    """The snapshot prefix does not identify a supported server status format."""


class UnsupportedFormatError(StatusFormatError):
    pass


class UnrecognizedFormatError(StatusFormatError):
    pass


class StatusStructureError(StatusError):
    """A line in the snapshot violates the status file structure."""


class MissingHeaderError(StatusStructureError):
    pass


class ColumnCountError(StatusStructureError):
    pass


class UnknownRecordError(StatusStructureError):
    pass


class InvalidValueError(StatusStructureError):
    pass


class StatusReadError(StatusError):
    """Reading the underlying stream failed."""


class GeoResolveError(Exception):
    """
    Geo lookup failed.

    Never fatal for a scrape. The parser logs it and degrades the row's geo
    columns instead.
    """
