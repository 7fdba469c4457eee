"""Marquee site builder.

Builds the marketing site for the code review extension: a landing page
with the Lead hero section and a blog rendered from Markdown posts with
YAML front-matter.

The main entry point is the CLI module, which provides commands for
building and checking the site and for running the development server.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
