"""Entry point for the mdblog CLI.

Running ``python -m mdblog`` calls the main function from the cli module.
"""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
