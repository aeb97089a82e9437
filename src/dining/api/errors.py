"""Mapping of dining errors onto HTTP responses.

Protean's own handlers cover ``ValidationError`` and friends; the handlers
here are registered on top of them for the typed dining errors. Starlette
picks the most specific handler for an exception class, so subclasses of
``ValidationError`` get their own status codes.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from protean.exceptions import ObjectNotFoundError
from protean.integrations.fastapi import register_exception_handlers

from dining.access.gate import SIGN_IN_PATH
from dining.errors import AuthenticationRequired, EmptyCartError, InvalidTransition, StoreUnavailable
from dining.utils.logging import get_logger

logger = get_logger(__name__)

RETRY_AFTER_SECONDS = 1


class AccessRedirect(Exception):
    """The caller is signed in but not allowed here; send them to ``target``."""

    def __init__(self, target):
        self.target = target
        super().__init__(target)


class AccessDeferred(Exception):
    """The caller's role is not known yet."""


async def empty_cart_handler(request: Request, exc: EmptyCartError):
    return JSONResponse(status_code=422, content={"error": exc.messages})


async def invalid_transition_handler(request: Request, exc: InvalidTransition):
    return JSONResponse(
        status_code=409,
        content={
            "error": exc.messages,
            "current_status": exc.current_status,
            "requested_status": exc.requested_status,
        },
    )


async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.warning("Store unavailable", operation=exc.operation, reason=exc.reason, path=request.url.path)
    return JSONResponse(
        status_code=503,
        content={"error": str(exc)},
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )


async def authentication_required_handler(request: Request, exc: AuthenticationRequired):
    return JSONResponse(status_code=401, content={"error": exc.message, "sign_in": SIGN_IN_PATH})


async def not_found_handler(request: Request, exc: ObjectNotFoundError):
    messages = getattr(exc, "messages", None) or str(exc)
    return JSONResponse(status_code=404, content={"error": messages})


async def access_redirect_handler(request: Request, exc: AccessRedirect):
    return RedirectResponse(url=exc.target, status_code=303)


async def access_deferred_handler(request: Request, exc: AccessDeferred):
    return JSONResponse(
        status_code=503,
        content={"error": "Resolving your session, try again shortly"},
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )


def register_error_handlers(app: FastAPI):
    register_exception_handlers(app)
    app.add_exception_handler(EmptyCartError, empty_cart_handler)
    app.add_exception_handler(InvalidTransition, invalid_transition_handler)
    app.add_exception_handler(StoreUnavailable, store_unavailable_handler)
    app.add_exception_handler(AuthenticationRequired, authentication_required_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(AccessRedirect, access_redirect_handler)
    app.add_exception_handler(AccessDeferred, access_deferred_handler)
