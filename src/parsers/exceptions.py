class ScannerError(Exception):
    pass


class InvalidAddressError(ScannerError):
    """Mint address failed format validation. Raised before any network call."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Invalid token address format: {address!r}")
        self.address = address


class MarketDataUnavailableError(ScannerError):
    """No market data source returned data for the token."""


class UpstreamError(ScannerError):
    """Transport, HTTP or JSON-RPC failure talking to an external service."""


class CircuitOpenError(UpstreamError):
    """Endpoint short-circuited after repeated consecutive failures."""
