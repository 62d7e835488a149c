"""Output file naming and the README index."""

import re
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import unquote, urlparse

from ..metadata.ids import format_timestamp
from ..models.events import SavedPage

_UNSAFE_RE = re.compile(r"[^\w\-.]")
_UNDERSCORES_RE = re.compile(r"_+")


def _clean_segment(segment: str) -> str:
    segment = _UNSAFE_RE.sub("_", unquote(segment))
    segment = _UNDERSCORES_RE.sub("_", segment).strip("_.")
    return segment or "_"


def url_to_relative_path(url: str, site_url: Optional[str] = None) -> Path:
    """
    Relative Markdown path for a page URL, mirroring the URL path.

    The site URL's own path prefix is removed. ``.html``/``.htm`` suffixes
    become ``.md`` and directory-style URLs map to ``index.md``, so a
    directory of HTML files and its extraction line up for sync-back.

    Example:
        url_to_relative_path("https://example.com/docs/intro.html", "https://example.com")
        # Path('docs/intro.md')
    """
    path = urlparse(url).path
    if site_url:
        base = urlparse(site_url).path.rstrip("/")
        if base and (path == base or path.startswith(base + "/")):
            path = path[len(base) :]

    parts = [part for part in PurePosixPath(path).parts if part not in ("/", "", ".", "..")]
    if not parts or path.endswith("/"):
        parts.append("index")

    name = parts[-1]
    if name.lower().endswith((".html", ".htm")):
        name = name.rsplit(".", 1)[0]
    cleaned = [_clean_segment(part) for part in parts[:-1]]
    cleaned.append(_clean_segment(name) + ".md")
    return Path(*cleaned)


def local_relative_path(html_file: Path, input_root: Path) -> Path:
    """
    Relative Markdown path for a local HTML file.

    Files under a directory keep their relative location; a single file
    maps to its stem.
    """
    if input_root.is_file() or html_file == input_root:
        return Path(html_file.stem + ".md")
    return html_file.relative_to(input_root).with_suffix(".md")


def build_readme(
    pages: list[SavedPage],
    source: str,
    extracted_at: datetime,
    output_dir: Path,
    extraction_id: Optional[str] = None,
) -> str:
    """
    README index for an extraction output directory.

    Lists every saved document and explains how edits are synced back.
    """
    lines = [
        "# Extracted Content",
        "",
        f"**Source:** {source}",
        f"**Extracted:** {format_timestamp(extracted_at)}",
    ]
    if extraction_id:
        lines.append(f"**Extraction ID:** {extraction_id}")
    lines += [
        "",
        "## Summary",
        "",
        f"- **Pages:** {len(pages)}",
        f"- **Content units:** {sum(page.unit_count for page in pages)}",
        "",
    ]

    if pages:
        lines += ["## Pages", ""]
        for page in pages:
            try:
                link = page.output_path.resolve().relative_to(output_dir.resolve()).as_posix()
            except ValueError:
                link = page.output_path.as_posix()
            lines.append(f"- [{page.title}]({link}) - {page.url}")
        lines.append("")

    lines += [
        "## Editing Instructions",
        "",
        "1. Edit the text in the Markdown files listed above.",
        "2. Keep every `<!-- ... -->` comment line exactly as it is.",
        "3. Each `<!-- Selector: ... -->` line belongs to the text right below it.",
        "4. Run `pagesync sync` to write the edits back into the HTML files.",
        "",
        "## Metadata Format",
        "",
        "- `Content ID`: identifier of the content unit",
        "- `Type`: unit type (heading, paragraph, list, ...)",
        "- `XPath`: fallback locator used when the selector is ambiguous",
        "- `Selector`: CSS selector of the source element",
        "",
    ]
    return "\n".join(lines)
