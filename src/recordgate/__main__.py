"""Entry point for 'python -m recordgate' command."""

from recordgate.cli import main

if __name__ == "__main__":
    main()
