from dataclasses import dataclass

import aiohttp
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from armory.core.config import Settings


@dataclass(frozen=True)
class AppContext:
    """Process-wide handles built once at startup and shared read-only by every request."""

    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    http: aiohttp.ClientSession


def get_context(request: Request) -> AppContext:
    return request.app.state.context
