"""Allow ``python -m relayscript``."""

from relayscript.frontends.cli import main

main()
