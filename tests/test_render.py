from toughfeed import parse
from toughfeed.render import feed_to_html, feed_to_text, item_to_html, item_to_text

DOC = """<rss><channel>
  <title>News &amp; Views</title>
  <link>https://example.com/</link>
  <description>&lt;p&gt;About us&lt;/p&gt;</description>
  <item>
    <title>Hello</title>
    <link>https://example.com/hello</link>
    <pubDate>Tue, 10 Jun 2003 09:41:01 GMT</pubDate>
    <category>misc</category>
    <description>First paragraph

Second paragraph</description>
  </item>
</channel></rss>"""


def test_item_to_text():
    item = parse(DOC).items[0]
    text = item_to_text(item)
    assert text.startswith(
        "Feed: News & Views <https://example.com/>\n"
        "Item: Hello <https://example.com/hello>\n"
    )
    assert "Date: 2003-06-10 09:41:01+00:00" in text
    assert "Category: misc" in text
    assert text.endswith("First paragraph\n\nSecond paragraph")


def test_feed_to_text():
    text = feed_to_text(parse(DOC))
    assert text.startswith("Type: rss\nEncoding: UTF-8\nTitle: News & Views\n")
    assert "Description: <p>About us</p>\n" not in text
    assert "Description: About us\n" in text
    assert "*" * 40 in text


def test_item_to_html_escapes_metadata():
    html = item_to_html(parse(DOC).items[0])
    assert '<a href="https://example.com/">\nNews &amp; Views\n</a>' in html
    assert '<a href="https://example.com/hello">\nHello\n</a>' in html
    assert "<br/>Category: misc" in html
    assert html.endswith("<p>First paragraph</p>\n<p>Second paragraph</p>")


def test_feed_to_html():
    html = feed_to_html(parse(DOC))
    assert html.startswith("<!DOCTYPE html")
    assert "Title: News &amp; Views<br>" in html
    assert html.rstrip().endswith("</body></html>")
