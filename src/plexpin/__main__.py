"""Allow ``python -m plexpin``."""

from plexpin.app import main

main()
