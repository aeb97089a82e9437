"""Per-request domain context for the HTTP API."""

from fastapi import FastAPI, Request

from dining.utils.logging import add_context, clear_context


def add_domain_context(app: FastAPI, domain):
    """Push ``domain``'s context around every HTTP request served by ``app``.

    The request method and path are bound to the log context for the
    duration of the request.
    """

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        add_context(method=request.method, path=request.url.path)
        try:
            with domain.domain_context():
                response = await call_next(request)
        finally:
            clear_context()
        return response
