from fastapi import HTTPException

from placement.services.errors import PlacementError


def http_error(exc: PlacementError) -> HTTPException:
    """Translate a service-layer error into the matching HTTP response."""
    return HTTPException(status_code=exc.status_code, detail=str(exc))
