"""End-to-end tests: extract a local site, edit the Markdown, sync it back."""

from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from pagesync.conversion import RoundTripSerializer
from pagesync.core import Extractor
from pagesync.models.config import OutputConfig, PagesyncConfig, SyncConfig
from pagesync.parsing import OrderedContentExtractor
from pagesync.sync import Reconciler, SyncBack, parse_sync_blocks

INTRO = "We are a small team building tools for people who maintain static websites."


@pytest.fixture
def sync_config(site_dir: Path, tmp_path: Path) -> SyncConfig:
    return SyncConfig(
        markdown_dir=tmp_path / "content",
        html_dir=site_dir,
        backup_dir=tmp_path / "backup",
    )


async def extract_site(site_dir: Path, sync_config: SyncConfig) -> None:
    config = PagesyncConfig(
        local_path=site_dir,
        output=OutputConfig(directory=sync_config.markdown_dir),
        sync=sync_config,
    )
    async with Extractor(config) as extractor:
        async for _ in extractor.run():
            pass
    assert extractor.stats.pages_failed == 0


class TestRoundTrip:
    """Extraction followed by sync-back."""

    @pytest.mark.asyncio
    async def test_unedited_documents_change_nothing(self, site_dir, sync_config):
        """Test that syncing freshly extracted Markdown is a no-op."""
        originals = {path: path.read_text(encoding="utf-8") for path in site_dir.rglob("*.html")}
        await extract_site(site_dir, sync_config)

        result = await SyncBack(sync_config).run()

        assert result.files_processed == 2
        assert result.files_updated == 0
        assert result.changes == []
        assert result.warnings == []
        for path, text in originals.items():
            assert path.read_text(encoding="utf-8") == text

    @pytest.mark.asyncio
    async def test_single_paragraph_edit(self, site_dir, sync_config):
        """Test that one edited paragraph yields exactly one change."""
        await extract_site(site_dir, sync_config)
        markdown_path = sync_config.markdown_dir / "about.md"
        markdown = markdown_path.read_text(encoding="utf-8")
        assert INTRO in markdown
        markdown_path.write_text(markdown.replace(INTRO, "We are a distributed team."), encoding="utf-8")

        result = await SyncBack(sync_config).run()

        assert len(result.changes) == 1
        assert result.changes[0].old_text == INTRO
        assert result.changes[0].new_text == "We are a distributed team."
        assert result.files_updated == 1

        soup = BeautifulSoup((site_dir / "about.html").read_text(encoding="utf-8"), "html.parser")
        assert soup.select_one("main > p").get_text() == "We are a distributed team."
        assert soup.select_one("main > h1").get_text() == "About Us"
        assert soup.find("nav") is not None
        assert (site_dir / "team" / "contact.html").read_text(encoding="utf-8").count("Berlin") == 1

    @pytest.mark.asyncio
    async def test_duplicate_paragraph_edit(self, site_dir, sync_config):
        """Test that editing one of two identical paragraphs touches only that one."""
        await extract_site(site_dir, sync_config)
        markdown_path = sync_config.markdown_dir / "about.md"
        markdown = markdown_path.read_text(encoding="utf-8")
        head, sep, tail = markdown.rpartition("Read more")
        markdown_path.write_text(head + "Continue reading" + tail, encoding="utf-8")

        result = await SyncBack(sync_config).run()

        assert len(result.changes) == 1
        soup = BeautifulSoup((site_dir / "about.html").read_text(encoding="utf-8"), "html.parser")
        paragraphs = [p.get_text() for p in soup.select("main > p")]
        assert paragraphs[-2:] == ["Read more", "Continue reading"]

    @pytest.mark.asyncio
    async def test_list_and_table_edits(self, site_dir, sync_config):
        """Test structured edits across two files."""
        await extract_site(site_dir, sync_config)
        about = sync_config.markdown_dir / "about.md"
        contact = sync_config.markdown_dir / "team" / "contact.md"
        about.write_text(
            about.read_text(encoding="utf-8").replace("- Markdown editing", "- Markdown editing\n- Sync back"),
            encoding="utf-8",
        )
        contact.write_text(contact.read_text(encoding="utf-8").replace("| Berlin |", "| Hamburg |"), encoding="utf-8")

        result = await SyncBack(sync_config).run()

        assert result.files_updated == 2
        assert len(result.changes) == 2
        about_soup = BeautifulSoup((site_dir / "about.html").read_text(encoding="utf-8"), "html.parser")
        assert [li.get_text() for li in about_soup.select("main > ul > li")] == [
            "Content extraction",
            "Markdown editing",
            "Sync back",
        ]
        assert "Hamburg" in (site_dir / "team" / "contact.html").read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_resync_after_edit_is_noop(self, site_dir, sync_config):
        """Test that applied edits are stable."""
        await extract_site(site_dir, sync_config)
        markdown_path = sync_config.markdown_dir / "about.md"
        markdown_path.write_text(
            markdown_path.read_text(encoding="utf-8").replace(INTRO, "Changed once."), encoding="utf-8"
        )

        await SyncBack(sync_config).run()
        result = await SyncBack(sync_config).run()

        assert result.changes == []


class TestSyntaxLikeText:
    """Paragraph text that looks like document syntax."""

    HTML = (
        "<html><body><main><h1>T</h1>"
        "<p>```not code</p>"
        "<p>&lt;!-- Selector: #zzz --&gt;</p>"
        "<p>Second para</p>"
        "</main></body></html>"
    )

    def serialize(self):
        page = OrderedContentExtractor().extract(self.HTML, "https://example.com/t")
        return page, RoundTripSerializer().serialize(page)

    def test_unedited_document_is_noop(self):
        """Test that every unit survives and nothing changes."""
        page, markdown = self.serialize()
        blocks = parse_sync_blocks(markdown)

        assert len(page.units) == 4
        assert [block.content_id for block in blocks] == [unit.id for unit in page.units]

        outcome = Reconciler().reconcile(self.HTML, blocks, "t.md")
        assert outcome.changes == []
        assert outcome.warnings == []
        assert outcome.html == self.HTML

    def test_edits_next_to_escaped_lines(self):
        """Test editing an escaped paragraph and its neighbour."""
        _, markdown = self.serialize()
        markdown = markdown.replace("\\```not code", "\\```still not code").replace("Second para", "Edited")

        outcome = Reconciler().reconcile(self.HTML, parse_sync_blocks(markdown), "t.md")

        assert [(change.old_text, change.new_text) for change in outcome.changes] == [
            ("```not code", "```still not code"),
            ("Second para", "Edited"),
        ]
        soup = BeautifulSoup(outcome.html, "html.parser")
        assert [p.get_text() for p in soup.select("main > p")] == [
            "```still not code",
            "<!-- Selector: #zzz -->",
            "Edited",
        ]
