"""Main entry point for Tool Farm."""

import asyncio

from tool_farm import __version__
from tool_farm.config import get_settings
from tool_farm.logging import get_logger, setup_logging
from tool_farm.updater.orchestrator import check_update


async def main() -> None:
    """Main application entry point."""
    setup_logging()
    log = get_logger("tool_farm.main")

    settings = get_settings()
    log.info(
        "starting_tool_farm",
        version=__version__,
        environment=settings.environment,
    )

    if settings.update_check_on_start:
        session = await check_update(settings)
        log.debug("update_session_finished", **session.to_dict())


def run() -> None:
    """Console-script wrapper around :func:`main`."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
