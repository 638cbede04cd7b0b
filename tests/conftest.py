import json
import textwrap

import pytest
import requests

from newsreel.models import FeedItem, Source


class FakeResponse:
    def __init__(self, status_code=200, content=b"", json_data=None):
        self.status_code = status_code
        if json_data is not None:
            content = json.dumps(json_data).encode("utf-8")
        self.content = content

    @property
    def text(self):
        return self.content.decode("utf-8")

    def json(self):
        return json.loads(self.content.decode("utf-8"))

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


RSS_DOCUMENT = textwrap.dedent(
    """\
    <?xml version="1.0" encoding="UTF-8"?>
    <rss version="2.0"
         xmlns:content="http://purl.org/rss/1.0/modules/content/"
         xmlns:media="http://search.yahoo.com/mrss/"
         xmlns:dc="http://purl.org/dc/elements/1.1/">
      <channel>
        <title>Example Channel</title>
        <item>
          <title>First story</title>
          <link>https://example.com/first</link>
          <guid>first-guid</guid>
          <pubDate>Tue, 10 Jun 2025 08:00:00 GMT</pubDate>
          <description><![CDATA[<p>Plain <b>description</b></p>]]></description>
          <content:encoded><![CDATA[<p>Full <img src="https://img.example.com/inline.jpg"> body</p>]]></content:encoded>
          <media:thumbnail url="https://img.example.com/thumb.jpg" />
        </item>
        <item>
          <title>Second story</title>
          <link>https://example.com/second</link>
          <dc:date>2025-06-11T09:30:00Z</dc:date>
          <description><![CDATA[<div>Only <img src="https://img.example.com/second.jpg"> inline</div>]]></description>
        </item>
      </channel>
    </rss>
    """
)

ATOM_DOCUMENT = textwrap.dedent(
    """\
    <?xml version="1.0" encoding="utf-8"?>
    <feed xmlns="http://www.w3.org/2005/Atom" xmlns:media="http://search.yahoo.com/mrss/">
      <title>Example Atom</title>
      <entry>
        <title>Atom story</title>
        <id>tag:example.com,2025:1</id>
        <link rel="replies" href="https://example.com/atom/comments" />
        <link rel="alternate" href="https://example.com/atom/1" />
        <published>2025-06-12T10:00:00Z</published>
        <updated>2025-06-12T11:00:00Z</updated>
        <content type="html">&lt;p&gt;Atom &lt;em&gt;content&lt;/em&gt;&lt;/p&gt;</content>
        <media:content url="https://img.example.com/atom.jpg" medium="image" />
      </entry>
      <entry>
        <title></title>
        <link href="https://example.com/atom/2" />
        <summary>Short summary</summary>
      </entry>
    </feed>
    """
)


@pytest.fixture
def source():
    return Source(id="example", name="Example News", url="https://example.com/feed")


@pytest.fixture
def make_item():
    def _make(item_id, published_at="", source_id="example", title=None):
        return FeedItem(
            id=item_id,
            source_id=source_id,
            source_name=source_id.title(),
            title=title or f"Title {item_id}",
            summary="Summary",
            link=f"https://example.com/{item_id}",
            published_at=published_at,
        )

    return _make


@pytest.fixture
def rss_document():
    return RSS_DOCUMENT


@pytest.fixture
def atom_document():
    return ATOM_DOCUMENT


@pytest.fixture
def fake_response():
    return FakeResponse
