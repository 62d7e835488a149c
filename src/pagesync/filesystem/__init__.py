"""Output paths and index files."""

from .naming import build_readme, local_relative_path, url_to_relative_path

__all__ = ["build_readme", "local_relative_path", "url_to_relative_path"]
