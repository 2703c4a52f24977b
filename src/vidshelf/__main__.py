"""Allow ``python -m vidshelf``."""

from vidshelf.cli.commands import main

if __name__ == "__main__":
    main()
