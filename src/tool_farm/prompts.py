"""Interactive prompts."""

import asyncio

from rich.prompt import Confirm


async def confirm(message: str, default: bool = True) -> bool:
    """Ask a yes/no question on the console without blocking the event loop."""
    return await asyncio.to_thread(Confirm.ask, message, default=default)
