"""Browser task runner that harvests identifiers from virtually scrolled lists."""

__version__ = "1.0.0"
