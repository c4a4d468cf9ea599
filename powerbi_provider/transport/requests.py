"""
Request helpers shared by the retry layers.
"""

import httpx


async def buffer_request(request: httpx.Request) -> bytes:
    """Read the request body into memory so it can be sent more than once."""
    return await request.aread()


def clone_request(request: httpx.Request, body: bytes) -> httpx.Request:
    """
    Create an independent copy of a request for one attempt.

    Headers are copied so an inner layer setting e.g. ``Authorization`` never
    leaks into the next attempt.
    """
    return httpx.Request(
        method=request.method,
        url=request.url,
        headers=request.headers.copy(),
        content=body,
        extensions=dict(request.extensions),
    )
