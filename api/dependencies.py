"""Request-scoped access to the AppContext the server was created with."""

from fastapi import Request

from krocs.context import AppContext


def get_context(request: Request) -> AppContext:
    return request.app.state.ctx
