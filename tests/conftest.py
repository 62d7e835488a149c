"""Shared fixtures for pagesync tests."""

from pathlib import Path

import pytest

ABOUT_HTML = """<!DOCTYPE html>
<html>
<head><title>About Us</title></head>
<body>
  <nav class="site-nav"><a href="/">Home</a> <a href="/about.html">About</a></nav>
  <main>
    <h1>About Us</h1>
    <p>We are a small team building tools for people who maintain static websites.</p>
    <h2>What we do</h2>
    <ul>
      <li>Content extraction</li>
      <li>Markdown editing</li>
    </ul>
    <pre><code>pagesync extract https://example.com</code></pre>
    <p>Read more</p>
    <p>Read more</p>
  </main>
  <footer>Copyright 2024 Example Inc.</footer>
</body>
</html>
"""

CONTACT_HTML = """<!DOCTYPE html>
<html>
<head><title>Contact</title></head>
<body>
  <article>
    <h1>Contact</h1>
    <p>Write to us at hello@example.com and we will answer within two business days.</p>
    <blockquote><p>Fast and friendly support.</p></blockquote>
    <table>
      <tr><th>Office</th><th>City</th></tr>
      <tr><td>HQ</td><td>Berlin</td></tr>
    </table>
  </article>
</body>
</html>
"""


@pytest.fixture
def about_html() -> str:
    """A small page with a navigation bar, a main region and a footer."""
    return ABOUT_HTML


@pytest.fixture
def contact_html() -> str:
    """A page with an article region, a blockquote and a table."""
    return CONTACT_HTML


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """Directory of HTML files: about.html and team/contact.html."""
    site = tmp_path / "site"
    (site / "team").mkdir(parents=True)
    (site / "about.html").write_text(ABOUT_HTML, encoding="utf-8")
    (site / "team" / "contact.html").write_text(CONTACT_HTML, encoding="utf-8")
    return site
