"""Entry point for 'python -m hookman' command."""

from hookman.cli import main

if __name__ == "__main__":
    main()
