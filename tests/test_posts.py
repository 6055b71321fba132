import re
from datetime import date, datetime

import pytest

from blogbuild.errors import ContentError
from blogbuild.posts import (
    load_markdown_post,
    load_notebook_post,
    load_posts,
    make_excerpt,
    slug_for,
    time_to_read,
)
from blogbuild.markdown_processing import add_heading_ids, prepare_markdown
from blogbuild.utils import coerce_date, format_date, prune

from conftest import make_post, write_notebook, write_post


@pytest.mark.parametrize("rel, slug", [
    ("hello-world/index.md", "/hello-world/"),
    ("notes.md", "/notes/"),
    ("2019/Intro Post.md", "/2019/intro-post/"),
    ("deep/nested/index.ipynb", "/deep/nested/"),
])
def test_slug_for(tmp_path, rel, slug):
    assert slug_for(tmp_path / rel, tmp_path) == slug


def test_slug_for_bare_index_is_an_error(tmp_path):
    with pytest.raises(ContentError):
        slug_for(tmp_path / "index.md", tmp_path)


@pytest.mark.parametrize("rel", ["static.md", "assets/index.md", "icons/logo.md"])
def test_slug_for_refuses_generated_directories(tmp_path, rel):
    with pytest.raises(ContentError, match="reserved"):
        slug_for(tmp_path / rel, tmp_path)


@pytest.mark.parametrize("value, expected", [
    (date(2019, 5, 1), date(2019, 5, 1)),
    (datetime(2019, 5, 1, 22, 12), date(2019, 5, 1)),
    ("2019-05-01", date(2019, 5, 1)),
    ("2019-05-01T22:12:03.284Z", date(2019, 5, 1)),
    ("May 01, 2019", date(2019, 5, 1)),
    ("not a date", None),
    ("", None),
    (42, None),
])
def test_coerce_date(value, expected):
    assert coerce_date(value) == expected


def test_format_date_is_month_day_year():
    assert format_date(date(2020, 3, 1)) == "March 01, 2020"


def test_prune_keeps_short_text():
    assert prune("short text", 160) == "short text"


def test_prune_cuts_on_word_boundary():
    text = "alpha beta gamma delta"
    assert prune(text, 13) == "alpha beta…"
    assert prune(text, 10) == "alpha beta…"


def test_excerpt_is_at_most_160_chars_plus_ellipsis():
    html = "<p>" + " ".join(["word"] * 100) + "</p>"
    excerpt = make_excerpt(html)
    assert excerpt.endswith("…")
    assert len(excerpt) <= 161
    assert "<" not in excerpt


def test_time_to_read():
    assert time_to_read("<p>few words</p>") == 1
    assert time_to_read("<p>" + "w " * 530 + "</p>") == 2


def test_description_falls_back_to_excerpt():
    with_description = make_post("d", date(2020, 1, 1), description="Hand written.")
    without = make_post("e", date(2020, 1, 1), excerpt="Pruned body text…")
    assert with_description.seo_description == "Hand written."
    assert without.seo_description == "Pruned body text…"


def test_load_markdown_post(tmp_path):
    path = write_post(tmp_path, "hello/index.md", """
        title: Hello
        date: 2019-05-01
        description: First one
    """, body="""
        Intro paragraph with a [link](https://example.com) and a [local one](/about/).

        ## Section one

        ## Section one

        ```python
        # not a heading
        ```
    """)
    post = load_markdown_post(path, tmp_path, "https://liamross.me/")

    assert post.slug == "/hello/"
    assert post.title == "Hello"
    assert post.date == date(2019, 5, 1)
    assert post.formatted_date == "May 01, 2019"
    assert post.description == "First one"
    assert post.read_time_minutes == 1
    assert 'id="section-one"' in post.html
    assert 'id="section-one-1"' in post.html
    anchor = re.search(r'<a [^>]*href="#section-one"[^>]*></a>', post.html)
    assert anchor and 'class="anchor"' in anchor.group(0)
    external = re.search(r'<a [^>]*href="https://example.com"[^>]*>', post.html).group(0)
    assert 'target="_blank"' in external
    assert 'rel="nofollow noopener noreferrer"' in external
    assert '<a href="/about/">local one</a>' in post.html
    assert "# not a heading" in post.html
    assert post.excerpt.startswith("Intro paragraph")


def test_excerpt_of_body_starting_with_a_heading(tmp_path):
    path = write_post(tmp_path, "start.md", """
        title: Start
        date: 2019-05-01
    """, body="## Getting started\n\nReal prose here.\n")
    post = load_markdown_post(path, tmp_path)
    assert post.excerpt == "Getting started Real prose here."
    assert "#" not in post.seo_description


def test_long_body_excerpt_is_pruned(tmp_path):
    path = write_post(tmp_path, "long.md", """
        title: Long
        date: 2019-05-01
    """, body=" ".join(["lorem"] * 200) + "\n")
    post = load_markdown_post(path, tmp_path)
    assert post.description is None
    assert len(post.excerpt) <= 161
    assert post.seo_description == post.excerpt


def test_local_images_become_post_assets(tmp_path):
    path = write_post(tmp_path, "pics/index.md", """
        title: Pics
        date: 2019-05-01
    """, body="![chart](chart.png)\n")
    (tmp_path / "pics" / "chart.png").write_bytes(b"png-bytes")
    post = load_markdown_post(path, tmp_path)

    (name,) = post.assets
    assert name.startswith("chart.") and name.endswith(".png")
    assert post.assets[name] == b"png-bytes"
    assert f'src="/pics/assets/{name}"' in post.html


def test_iframes_are_wrapped(tmp_path):
    path = write_post(tmp_path, "video.md", """
        title: Video
        date: 2019-05-01
    """, body='<iframe src="https://www.youtube.com/embed/x"></iframe>\n')
    post = load_markdown_post(path, tmp_path)
    assert '<div class="responsive-iframe"' in post.html
    assert "<iframe" in post.html


@pytest.mark.parametrize("front_matter, message", [
    ("date: 2019-05-01", "no title"),
    ("title: No date", "no date"),
    ("title: Bad date\ndate: someday", "unparseable date"),
])
def test_content_errors(tmp_path, front_matter, message):
    path = write_post(tmp_path, "broken.md", front_matter)
    with pytest.raises(ContentError, match=message):
        load_markdown_post(path, tmp_path)


def test_missing_front_matter_is_an_error(tmp_path):
    path = tmp_path / "plain.md"
    path.write_text("# Just text\n", encoding="utf-8")
    with pytest.raises(ContentError, match="missing front matter"):
        load_markdown_post(path, tmp_path)


def test_malformed_front_matter_is_an_error(tmp_path):
    path = tmp_path / "bad.md"
    path.write_text("---\ntitle: [unclosed\n---\nbody\n", encoding="utf-8")
    with pytest.raises(ContentError, match="malformed front matter"):
        load_markdown_post(path, tmp_path)


def test_load_notebook_post(tmp_path):
    path = write_notebook(
        tmp_path,
        "nb/index.ipynb",
        cells=[
            {"cell_type": "markdown", "metadata": {},
             "source": "# Notebook title\n\nSome prose."},
            {"cell_type": "code", "metadata": {}, "execution_count": 1,
             "source": "print('hi')",
             "outputs": [{"output_type": "stream", "name": "stdout", "text": "hi\n"}]},
            {"cell_type": "code", "metadata": {"tags": ["remove-cell"]},
             "execution_count": 2, "source": "secret = 1", "outputs": []},
            {"cell_type": "code", "metadata": {"tags": ["hide-input"]},
             "execution_count": 3, "source": "hidden_source()",
             "outputs": [{"output_type": "stream", "name": "stdout", "text": "shown\n"}]},
        ],
        metadata={"date": "2020-04-01"},
    )
    post = load_notebook_post(path, tmp_path)

    assert post.slug == "/nb/"
    assert post.title == "Notebook title"
    assert post.date == date(2020, 4, 1)
    assert "print(" in post.html
    assert "secret" not in post.html
    assert "hidden_source" not in post.html
    assert "shown" in post.html


def test_notebook_without_date_is_an_error(tmp_path):
    path = write_notebook(
        tmp_path, "nodate.ipynb",
        cells=[{"cell_type": "markdown", "metadata": {}, "source": "# T"}],
        metadata={},
    )
    with pytest.raises(ContentError, match="no date"):
        load_notebook_post(path, tmp_path)


def test_invalid_notebook_is_an_error(tmp_path):
    path = tmp_path / "broken.ipynb"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ContentError, match="invalid notebook"):
        load_notebook_post(path, tmp_path)


def test_load_posts_in_path_order(tmp_path):
    write_post(tmp_path, "post10.md", "title: Ten\ndate: 2020-01-10")
    write_post(tmp_path, "post2.md", "title: Two\ndate: 2020-01-02")
    write_post(tmp_path, "post1/index.md", "title: One\ndate: 2020-01-01")
    posts = load_posts(tmp_path)
    assert [p.slug for p in posts] == ["/post1/", "/post2/", "/post10/"]


def test_duplicate_slugs_are_rejected(tmp_path):
    write_post(tmp_path, "same.md", "title: A\ndate: 2020-01-01")
    write_post(tmp_path, "same/index.md", "title: B\ndate: 2020-01-02")
    with pytest.raises(ContentError, match="already used"):
        load_posts(tmp_path)


def test_missing_content_dir_loads_nothing(tmp_path):
    assert load_posts(tmp_path / "nope") == []


def test_heading_ids_are_unique_across_setext_and_atx():
    used = {}
    text = add_heading_ids(
        "Intro\n=====\n\n## Intro\n\n### Custom {#mine}\n", used
    )
    assert "# Intro {#intro}" in text
    assert "## Intro {#intro-1}" in text
    assert "### Custom {#mine}" in text
    assert used == {"intro": 2, "mine": 1}
    # ids stay unique for the next cell of the same notebook
    assert add_heading_ids("# Intro\n", used) == "# Intro {#intro-2}\n"


def test_math_and_code_are_left_alone():
    md = "Inline $a_1 # b$ math.\n\n```\n# comment\n```\n"
    out = prepare_markdown(md, used_ids={})
    assert "$a_1 # b$" in out
    assert "# comment\n```" in out
    assert "{#" not in out
