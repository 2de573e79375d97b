from backoffice.schemas.common import ErrorOut


_ERROR_EXAMPLES: dict[int, tuple[str, str]] = {
    400: ("bad_request", "Name and code are required"),
    401: ("unauthorized", "Not authenticated"),
    404: ("not_found", "Resource not found"),
    409: ("conflict", "Inventory record already exists for this product/variant"),
    422: ("validation_error", "Validation failed"),
    429: ("rate_limited", "Too many failed attempts. Try again later."),
    500: ("internal_error", "Internal server error"),
}

# Every authenticated route can fail these ways.
AUTHENTICATED_ERRORS = (401, 422, 500)


def error_responses(*status_codes: int, authenticated: bool = True) -> dict[int, dict]:
    codes = set(status_codes)
    if authenticated:
        codes.update(AUTHENTICATED_ERRORS)

    responses: dict[int, dict] = {}
    for status_code in sorted(codes):
        code, message = _ERROR_EXAMPLES.get(status_code, ("http_error", "HTTP error"))
        responses[status_code] = {
            "model": ErrorOut,
            "description": message,
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": code,
                            "message": message,
                            "request_id": "request-id",
                            "path": "/api/example",
                            "details": None,
                        }
                    }
                }
            },
        }
    return responses
