"""Allow ``python -m aiops``."""

from aiops.main import cli

if __name__ == "__main__":
    cli()
