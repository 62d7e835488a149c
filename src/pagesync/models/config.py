"""Pydantic configuration models for pagesync."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Elements that typically contain main content
DEFAULT_CONTENT_SELECTORS = [
    "main",
    '[role="main"]',
    "article",
    "section",
    ".content",
    ".main-content",
    ".post-content",
    ".article-content",
    ".documentation",
    ".docs-content",
    "#content",
    "#main-content",
]

# Elements that are never content, whatever their text
DEFAULT_EXCLUDE_SELECTORS = [
    "nav",
    "header",
    "footer",
    ".navigation",
    ".sidebar",
    '[role="navigation"]',
    ".ads",
    ".social-share",
]

DEFAULT_NAVIGATION_KEYWORDS = [
    "nav",
    "navigation",
    "menu",
    "navbar",
    "header",
    "footer",
    "sidebar",
]

# Layout, color, spacing and visibility class names that never identify an element
DEFAULT_GENERIC_CLASSES = [
    "container", "wrapper", "content", "main", "section", "div",
    "clear", "clearfix", "hidden", "visible", "active", "inactive",
    "left", "right", "center", "top", "bottom", "middle",
    "small", "medium", "large", "big", "tiny",
    "red", "blue", "green", "yellow", "black", "white",
    "bold", "italic", "underline", "strike",
    "margin", "padding", "border", "background",
]  # fmt: skip


class ContentSelectionConfig(BaseModel):
    """Which elements are candidate content regions and which are never content."""

    content_selectors: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CONTENT_SELECTORS),
        description="CSS selectors for candidate main-content regions",
    )
    exclude_selectors: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_SELECTORS),
        description="CSS selectors for elements that are never extracted",
    )
    navigation_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_NAVIGATION_KEYWORDS),
        description="Class/id substrings that mark navigation elements",
    )
    include_navigation: bool = Field(
        False,
        description="Extract navigation-like elements inside regions",
    )
    extract_links: bool = Field(False, description="Emit standalone links as link units")
    extract_images: bool = Field(False, description="Emit standalone images as image units")
    max_regions: Optional[int] = Field(
        None,
        ge=1,
        description="Maximum regions to extract per page (None = all non-overlapping regions)",
    )

    model_config = {"extra": "forbid"}


class ScoringConfig(BaseModel):
    """Weights and thresholds of the content-region heuristic."""

    main_weight: float = Field(100, description="Base score for <main>")
    article_weight: float = Field(80, description="Base score for <article>")
    section_weight: float = Field(60, description="Base score for <section>")
    generic_weight: float = Field(20, description="Base score for any other container")
    long_text_length: int = Field(1000, ge=0, description="Text length for the largest bonus")
    long_text_bonus: float = Field(50)
    medium_text_length: int = Field(500, ge=0)
    medium_text_bonus: float = Field(30)
    short_text_length: int = Field(100, ge=0)
    short_text_bonus: float = Field(10)
    heading_weight: float = Field(10, description="Bonus per descendant heading")
    paragraph_weight: float = Field(5, description="Bonus per descendant paragraph")
    navigation_penalty: float = Field(100, ge=0)
    link_density_threshold: float = Field(
        0.5,
        ge=0,
        le=1,
        description="Link count / descendant count above which a region is penalized",
    )
    link_density_penalty: float = Field(30, ge=0)
    min_text_length: int = Field(50, ge=0, description="Regions with less text are penalized")
    min_text_penalty: float = Field(50, ge=0)
    generic_block_min_length: int = Field(
        50,
        ge=0,
        description="Minimum text length for a div/section to become a genericBlock unit",
    )

    model_config = {"extra": "forbid"}


class SelectorConfig(BaseModel):
    """Selector strategy reliabilities and limits."""

    id_reliability: float = Field(0.95, ge=0, le=1)
    data_attribute_reliability: float = Field(0.9, ge=0, le=1)
    role_reliability: float = Field(0.7, ge=0, le=1)
    class_reliability: float = Field(0.8, ge=0, le=1)
    path_reliability: float = Field(0.6, ge=0, le=1)
    data_attributes: list[str] = Field(
        default_factory=lambda: ["data-testid", "data-id", "data-content", "data-component"],
        description="Stable custom attributes, in priority order",
    )
    unique_class_limit: int = Field(
        3,
        ge=1,
        description="A class occurring at most this many times counts as unique enough",
    )
    generic_classes: list[str] = Field(default_factory=lambda: list(DEFAULT_GENERIC_CLASSES))
    contextual_threshold: float = Field(
        0.9,
        ge=0,
        le=1,
        description="Below this reliability, ancestor context is prepended",
    )
    context_levels: int = Field(2, ge=0, description="Ancestor levels added for context")
    max_reliability: float = Field(0.95, ge=0, le=1)
    verify_uniqueness: bool = Field(
        True,
        description="Re-query the document to escalate non-unique selectors",
    )

    model_config = {"extra": "forbid"}


class RenderConfig(BaseModel):
    """Settings passed to the page renderer collaborator."""

    javascript: bool = Field(False, description="Render pages with Playwright instead of plain HTTP")
    wait_for_selector: Optional[str] = Field(
        None,
        description="Selector to wait for before capturing the page (browser only)",
    )
    wait_time: float = Field(0, ge=0, description="Extra seconds to wait after load (browser only)")
    browser_contexts: int = Field(3, ge=1, description="Size of the browser context pool")
    headless: bool = Field(True)
    user_agent: str = Field(DEFAULT_USER_AGENT)
    timeout: float = Field(30.0, gt=0, description="Page load timeout in seconds")

    model_config = {"extra": "forbid"}


class OutputConfig(BaseModel):
    """Where and how serialized documents are written."""

    directory: Path = Field(Path("./content"), description="Output directory for markdown files")
    generate_readme: bool = Field(True, description="Write README.md with editing instructions")
    include_xpath: bool = Field(True, description="Embed the fallback XPath in unit comments")
    provenance: bool = Field(
        True,
        description="Embed provenance comments (disable for plain, non-syncable markdown)",
    )
    styled: bool = Field(
        False,
        description="Render paragraphs with the stylistic converter (only without provenance)",
    )

    model_config = {"extra": "forbid"}


class SyncConfig(BaseModel):
    """Settings for reconciling edited markdown back into HTML."""

    markdown_dir: Path = Field(Path("./content"), description="Directory of edited markdown files")
    html_dir: Path = Field(Path("./"), description="Directory of original HTML files")
    backup_dir: Path = Field(Path("./backup"), description="Backups are written here")
    dry_run: bool = Field(False, description="Report changes without writing files")

    model_config = {"extra": "forbid"}


class PagesyncConfig(BaseModel):
    """
    Root configuration model for pagesync.

    Example:
        config = PagesyncConfig(
            site_url="https://example.com",
            pages=["https://example.com/about"],
            output=OutputConfig(directory=Path("./content")),
        )

    YAML format:
        site_url: https://example.com
        selection:
          exclude_selectors: [nav, footer]
        render:
          javascript: true
          wait_for_selector: main
    """

    site_url: Optional[str] = Field(None, description="Site to extract from")
    pages: list[str] = Field(default_factory=list, description="Explicit pages (default: site_url only)")
    local_path: Optional[Path] = Field(None, description="Local HTML file or directory to extract")

    selection: ContentSelectionConfig = Field(default_factory=ContentSelectionConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    selectors: SelectorConfig = Field(default_factory=SelectorConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field("INFO")
    log_file: Optional[Path] = Field(None, description="Log file path")
    dry_run: bool = Field(False, description="Extract without writing files")

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def _check_styled_output(self) -> "PagesyncConfig":
        if self.output.styled and self.output.provenance:
            raise ValueError("output.styled requires output.provenance = false (styled text cannot be synced back)")
        return self

    def page_urls(self) -> list[str]:
        """Pages to extract: the explicit list, else the site URL."""
        if self.pages:
            return list(self.pages)
        return [self.site_url] if self.site_url else []

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False, sort_keys=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "PagesyncConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "PagesyncConfig":
        """Load config from YAML file."""
        return cls.from_yaml(path.read_text(encoding="utf-8"))
