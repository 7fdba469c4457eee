"""Entry point for ``python -m marquee``."""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    main()
