"""
Request-scoped client address.

Web middleware binds the caller's address for the duration of a request; the
line formatter reads it back and renders it as ``[client <addr>]``. Values
live in a ``ContextVar``, so each thread and asyncio task sees its own.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator, Optional

_client_address: ContextVar[Optional[str]] = ContextVar("linelog_client_address", default=None)


def bind_client_address(
    forwarded_for: Optional[str] = None, remote_addr: Optional[str] = None
) -> Token[Optional[str]]:
    """Bind the client address; ``X-Forwarded-For`` takes precedence."""
    address = forwarded_for if forwarded_for is not None else remote_addr
    return _client_address.set(address)


def reset_client_address(token: Token[Optional[str]]) -> None:
    _client_address.reset(token)


def current_client_address() -> Optional[str]:
    return _client_address.get()


@contextmanager
def client_context(
    forwarded_for: Optional[str] = None, remote_addr: Optional[str] = None
) -> Iterator[Optional[str]]:
    token = bind_client_address(forwarded_for, remote_addr)
    try:
        yield current_client_address()
    finally:
        reset_client_address(token)
