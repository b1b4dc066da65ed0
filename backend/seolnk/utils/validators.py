MAX_HEADER_LENGTH = 512


def get_client_ip(request) -> str:
    """
    Get client IP address from request.

    Args:
        request: FastAPI request object

    Returns:
        Client IP address
    """
    # Check for X-Forwarded-For header (if behind proxy)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take the first IP in the chain
        return forwarded.split(",")[0].strip()

    # Otherwise use client.host
    return request.client.host if request.client else "unknown"


def clip(value, length: int = MAX_HEADER_LENGTH):
    """Trim a header value to the column size, keeping None as None"""
    if value is None:
        return None
    return value[:length]
