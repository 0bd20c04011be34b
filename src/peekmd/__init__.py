"""peekmd - live preview server for folders of Markdown documents."""

__version__ = "0.1.0"
