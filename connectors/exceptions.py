# connectors/exceptions.py

class EnrichmentError(Exception):
    pass


class EnrichmentUnavailable(EnrichmentError):
    pass


class EnrichmentTimeout(EnrichmentError):
    pass


class InvalidEnrichmentResponse(EnrichmentError):
    pass
