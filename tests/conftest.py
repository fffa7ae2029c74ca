# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import docsignals  # noqa: F401
except ImportError:
    raise ImportError("docsignals is not installed. Run: pip install -e '.[test]'") from None

import pytest


# A page that scores well on every signal
SEMANTIC_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><title>Guide</title><style>body { color: red; }</style></head>
<body>
  <header><nav><a href="/docs">Documentation</a><a href="/blog">Engineering blog</a></nav></header>
  <main>
    <h1>Structured markup</h1>
    <section>
      <h2>Why landmarks matter</h2>
      <p>Landmarks describe <em>regions</em> of a page.</p>
      <ul><li>Navigation</li><li>Main content</li></ul>
    </section>
  </main>
  <footer><p>Published <time datetime="2025-01-15">January 15</time></p></footer>
  <script>console.log("tracking");</script>
</body>
</html>"""

# A page built only from generic containers
DIV_SOUP_PAGE = """<html><body>
  <div class="header"><div class="logo"><span>Brand</span></div></div>
  <div class="content">
    <div class="title"><span>Welcome</span></div>
    <div><a href="/next">click here</a></div>
  </div>
</body></html>"""


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Keep tests away from the user's environment and home directory."""
    for name in (
        "DOCSIGNALS_TIMEOUT",
        "DOCSIGNALS_RELAY_URL",
        "DOCSIGNALS_FETCH_COUNT",
        "DOCSIGNALS_FETCH_DELAY",
        "DOCSIGNALS_USER_AGENT",
        "DOCSIGNALS_RESOLVE_DNS",
        "DOCSIGNALS_RELAY_HOST",
        "DOCSIGNALS_RELAY_PORT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DOCSIGNALS_HISTORY_PATH", str(tmp_path / "history.json"))


@pytest.fixture
def semantic_page() -> str:
    return SEMANTIC_PAGE


@pytest.fixture
def div_soup_page() -> str:
    return DIV_SOUP_PAGE
