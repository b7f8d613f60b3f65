"""Entry point for ``python -m tool_farm``."""

from tool_farm.main import run

if __name__ == "__main__":
    run()
