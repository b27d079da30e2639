"""
errors.py — Exception taxonomy for the hazard alert backend.

  HazardValidationError  malformed report, rejected at the store boundary (HTTP 400)
  UpstreamUnavailable    routing / geocoding provider failed or timed out (HTTP 502)
  MissingFieldError      stored hazard lacks coordinates; the correlator skips it

"Nothing found" is never an exception: an empty geocode result or an empty
correlation is a normal return value.
"""


class HazardAlertError(Exception):
    """Base class for every error raised by this package."""


class HazardValidationError(HazardAlertError):
    """A hazard report is missing type, latitude or longitude."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required fields: {', '.join(missing)}")


class MissingFieldError(HazardAlertError):
    """A hazard record read back from storage has no usable coordinates."""

    def __init__(self, hazard_id: str | None, field: str):
        self.hazard_id = hazard_id
        self.field = field
        super().__init__(f"Hazard {hazard_id or '<unknown>'} has no {field}")


class UpstreamUnavailable(HazardAlertError):
    """A third-party provider could not serve the request."""

    # Message shown to the end user; the exception text carries the details.
    public_message = "Upstream service unavailable"


class RouteUnavailable(UpstreamUnavailable):
    public_message = "Failed to fetch route data"


class GeocodingUnavailable(UpstreamUnavailable):
    public_message = "Failed to search for destination"
