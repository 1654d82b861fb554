"""Module entrypoint for ``python -m lazyjj``."""

from .cli import main


if __name__ == "__main__":
    main()
