"""Unit tests for page-tree construction."""

from datetime import datetime
from pathlib import Path

import pytest

from conftest import PinnedStorage
from swifty.core.builder import PageTreeBuilder, format_date
from swifty.core.cascade import ConfigResolver, LayeredConfig
from swifty.core.errors import ConfigError, DuplicatePageError, FrontMatterError, SiteError
from swifty.core.links import title_from_name
from swifty.core.models import FileTimes, PageRef
from swifty.core.tree import TagIndex

HOME_CRUMB = (
    '<a class="breadcrumb" href="/" data-turbo-frame="content" '
    'data-turbo-action="advance">Home</a>'
)

SITE = {
    "index.md": "---\ntitle: Welcome\n---\n# Hi",
    "about.md": "About us",
    "notes.txt": "not a page",
    "blog/config.yaml": "author: Ada\n",
    "blog/post-one.md": "---\ntags: [intro]\n---\nFirst",
    "blog/post-two.md": "---\ntitle: Second Post\ntags: [intro, web]\n---\nSecond",
}


class FailingStorage(PinnedStorage):
    """Storage whose listing fails for directories with a given name."""

    def __init__(self, broken: str):
        super().__init__()
        self.broken = broken

    async def list_dir(self, path: Path):
        if path.name == self.broken:
            raise PermissionError(f"cannot read {path}")
        return await super().list_dir(path)


def make_builder(storage) -> PageTreeBuilder:
    return PageTreeBuilder(storage, ConfigResolver(storage))


@pytest.fixture
def builder(storage):
    return make_builder(storage)


@pytest.fixture
def pages_dir(make_tree, tmp_path):
    return make_tree(SITE, tmp_path / "pages")


# ============================================================
# Identity and titles
# ============================================================


class TestIdentity:
    @pytest.mark.asyncio
    async def test_top_level_order_and_urls(self, builder, pages_dir):
        tree = await builder.build(pages_dir)
        assert [p.url for p in tree.pages] == ["/about.html", "/blog.html", "/", "/tags.html"]

    @pytest.mark.asyncio
    async def test_document_identity(self, builder, pages_dir):
        tree = await builder.build(pages_dir)
        post = tree.get("/blog/post-one.html")
        assert post.name == "post-one"
        assert post.path == "/blog/post-one"
        assert post.source == pages_dir / "blog" / "post-one.md"
        assert post.output_path == "blog/post-one.html"
        assert not post.is_folder
        assert not post.is_index

    @pytest.mark.asyncio
    async def test_root_index(self, builder, pages_dir):
        tree = await builder.build(pages_dir)
        index = tree.landing_page
        assert index.url == "/"
        assert index.is_index
        assert index.output_path == "index.html"
        assert index.nav is False

    @pytest.mark.asyncio
    async def test_nested_index(self, builder, make_tree, tmp_path):
        pages = make_tree({"index.md": "home", "docs/index.md": "docs home"}, tmp_path / "pages")
        tree = await builder.build(pages)
        nested = tree.get("/docs/")
        assert nested.is_index
        assert nested.output_path == "docs/index.html"
        assert tree.get("/docs.html").children == [PageRef(title="Index", url="/docs/")]

    @pytest.mark.asyncio
    async def test_skips_unrecognised_files(self, builder, pages_dir):
        tree = await builder.build(pages_dir)
        assert all(p.source is None or p.source.suffix != ".txt" for p in tree.walk())
        assert all(p.name != "config" for p in tree.walk())

    @pytest.mark.asyncio
    async def test_front_matter_title_wins(self, builder, pages_dir):
        tree = await builder.build(pages_dir)
        assert tree.landing_page.title == "Welcome"
        assert tree.get("/blog/post-two.html").title == "Second Post"

    @pytest.mark.asyncio
    async def test_title_from_filename(self, builder, make_tree, tmp_path):
        pages = make_tree({"my-first-post.md": "x", "index.md": ""}, tmp_path / "pages")
        tree = await builder.build(pages)
        assert tree.get("/my-first-post.html").title == "My First Post"

    def test_title_from_name(self):
        assert title_from_name("post-one") == "Post One"
        assert title_from_name("faq") == "Faq"

    @pytest.mark.asyncio
    async def test_folder_title_and_body(self, builder, pages_dir):
        tree = await builder.build(pages_dir)
        blog = tree.get("/blog.html")
        assert blog.is_folder
        assert blog.title == "Blog"
        assert "<li>2024-03-04: <a href=\"/blog/post-one.html\"" in blog.raw_body
        assert ">Post One</a>" in blog.raw_body
        assert blog.raw_body.index("post-one") < blog.raw_body.index("post-two")

    @pytest.mark.asyncio
    async def test_listings_are_dated_by_default(self, builder, make_tree, tmp_path):
        pages = make_tree(
            {"index.md": "", "blog/post-one.md": "---\ntags: [intro]\n---\nx"},
            tmp_path / "pages",
        )
        tree = await builder.build(pages)
        assert tree.config.get("dates") is False
        assert "<li>2024-03-04: <a href=\"/blog/post-one.html\"" in tree.get("/blog.html").raw_body
        assert "<li>2024-03-04: <a href=\"/blog/post-one.html\"" in tree.get("/tags/intro.html").raw_body
        assert "<li>2024-03-04: <a href=\"/tags/intro.html\"" in tree.get("/tags.html").raw_body


# ============================================================
# Dates
# ============================================================


class TestDates:
    def test_format_date(self):
        assert format_date(datetime(2024, 3, 4), "%d/%m/%Y") == "04/03/2024"
        assert format_date(None, "%Y") == ""

    @pytest.mark.asyncio
    async def test_date_format_from_settings(self, make_tree, tmp_path):
        pages = make_tree(
            {"index.md": "", "config.yaml": "dateFormat: '%B %d, %Y'\n", "a.md": "x"},
            tmp_path / "pages",
        )
        storage = PinnedStorage(
            {"a.md": FileTimes(created=datetime(2023, 1, 5), modified=datetime(2023, 2, 6))}
        )
        tree = await make_builder(storage).build(pages)
        page = tree.get("/a.html")
        assert page.created_at == "January 05, 2023"
        assert page.updated_at == "February 06, 2023"
        assert page.config["date"] == "February 06, 2023"


# ============================================================
# Relationships
# ============================================================


class TestRelationships:
    @pytest.mark.asyncio
    async def test_children_and_siblings(self, builder, pages_dir):
        tree = await builder.build(pages_dir)
        blog = tree.get("/blog.html")
        one = PageRef(title="Post One", url="/blog/post-one.html")
        two = PageRef(title="Second Post", url="/blog/post-two.html")
        assert blog.children == [one, two]
        assert tree.get(one.url).siblings == [two]
        assert tree.get(two.url).siblings == [one]

    @pytest.mark.asyncio
    async def test_parent_reference(self, builder, pages_dir):
        tree = await builder.build(pages_dir)
        post = tree.get("/blog/post-one.html")
        assert post.parent == PageRef(title="Blog", url="/blog.html")
        assert tree.parent_of(post) is tree.get("/blog.html")
        assert tree.get("/about.html").parent is None

    @pytest.mark.asyncio
    async def test_folder_invariants(self, builder, make_tree, tmp_path):
        pages = make_tree(
            {
                "index.md": "",
                "a/one.md": "",
                "a/two.md": "",
                "a/three.md": "",
                "a/skip.png": "",
                "a/b/deep.md": "",
                "a/b/c/": "",
            },
            tmp_path / "pages",
        )
        tree = await builder.build(pages)
        valid_counts = {"/a.html": 4, "/a/b.html": 2, "/a/b/c.html": 0}
        for url, count in valid_counts.items():
            folder = tree.get(url)
            assert len(folder.children) == count
            for child in folder.pages:
                assert child.parent.url == folder.url
                assert folder.children.count(child.ref) == 1
                assert child.siblings == [ref for ref in folder.children if ref != child.ref]

    @pytest.mark.asyncio
    async def test_breadcrumbs(self, builder, pages_dir):
        tree = await builder.build(pages_dir)
        assert tree.landing_page.derived["breadcrumbs"] == HOME_CRUMB

        about = tree.get("/about.html").derived["breadcrumbs"]
        assert about.startswith(HOME_CRUMB + " &raquo; ")
        assert about.endswith(">About</a>")

        post = tree.get("/blog/post-one.html").derived["breadcrumbs"]
        blog = tree.get("/blog.html").derived["breadcrumbs"]
        assert post.startswith(blog + " &raquo; ")
        assert post.count("&raquo;") == 2
        assert post.endswith(">Post One</a>")

    @pytest.mark.asyncio
    async def test_link_fields(self, builder, pages_dir):
        tree = await builder.build(pages_dir)
        blog = tree.get("/blog.html").derived
        assert 'href="/blog/post-one.html"' in blog["links_to_children"]
        assert 'href="/blog/post-two.html"' in blog["links_to_children"]
        assert blog["link_to_parent"] == ""

        post = tree.get("/blog/post-one.html").derived
        assert 'href="/blog.html"' in post["link_to_parent"]
        assert 'href="/blog/post-two.html"' in post["links_to_siblings"]
        assert 'href="/blog/post-one.html"' not in post["links_to_siblings"]
        assert post["links_to_self_and_siblings"].count("<a ") == 2

    @pytest.mark.asyncio
    async def test_values_include_derived_fields(self, builder, pages_dir):
        tree = await builder.build(pages_dir)
        values = tree.get("/blog/post-one.html").values()
        assert values["title"] == "Post One"
        assert values["url"] == "/blog/post-one.html"
        assert values["breadcrumbs"].endswith(">Post One</a>")

    @pytest.mark.asyncio
    async def test_nav_flags(self, builder, pages_dir):
        tree = await builder.build(pages_dir)
        nav = {p.url: p.nav for p in tree.pages}
        assert nav == {"/about.html": True, "/blog.html": True, "/": False, "/tags.html": False}

    @pytest.mark.asyncio
    async def test_nav_opt_in_and_out(self, builder, make_tree, tmp_path):
        pages = make_tree(
            {"index.md": "---\nnav: true\n---\n", "hidden.md": "---\nnav: false\n---\n"},
            tmp_path / "pages",
        )
        tree = await builder.build(pages)
        assert tree.get("/").nav is True
        assert tree.get("/hidden.html").nav is False


# ============================================================
# Settings cascade through the tree
# ============================================================


class TestConfigInheritance:
    @pytest.mark.asyncio
    async def test_folder_settings_apply_to_children(self, builder, pages_dir):
        tree = await builder.build(pages_dir)
        assert tree.get("/blog.html").config["author"] == "Ada"
        assert tree.get("/blog/post-one.html").config["author"] == "Ada"
        assert tree.get("/about.html").config["author"] is None

    @pytest.mark.asyncio
    async def test_front_matter_overrides_settings(self, builder, make_tree, tmp_path):
        pages = make_tree(
            {
                "index.md": "",
                "config.yaml": "author: Ada\nlayout: post\n",
                "a.md": "---\nauthor: Grace\n---\nx",
            },
            tmp_path / "pages",
        )
        tree = await builder.build(pages)
        page = tree.get("/a.html")
        assert page.config["author"] == "Grace"
        assert page.config["layout"] == "post"
        assert page.layout == "post"

    @pytest.mark.asyncio
    async def test_starts_from_given_defaults(self, builder, pages_dir):
        defaults = LayeredConfig().push("defaults", {"sitename": "Docs", "dateFormat": "%Y"})
        tree = await builder.build(pages_dir, defaults=defaults)
        assert tree.get("/about.html").config["sitename"] == "Docs"
        assert tree.get("/about.html").updated_at == "2024"

    @pytest.mark.asyncio
    async def test_malformed_settings_abort(self, builder, make_tree, tmp_path):
        pages = make_tree({"index.md": "", "sub/config.yaml": "a: [b\n", "sub/x.md": ""}, tmp_path / "pages")
        with pytest.raises(ConfigError):
            await builder.build(pages)


# ============================================================
# Tags
# ============================================================


class TestTags:
    @pytest.mark.asyncio
    async def test_tag_aggregation(self, builder, make_tree, tmp_path):
        pages = make_tree(
            {
                "index.md": "",
                "a.md": "---\ntags: [go]\n---\n",
                "b.md": "---\ntags: [go, web]\n---\n",
            },
            tmp_path / "pages",
        )
        tree = await builder.build(pages)
        a = PageRef(title="A", url="/a.html")
        b = PageRef(title="B", url="/b.html")
        assert tree.tags.get("go") == [a, b]
        assert tree.tags.get("web") == [b]

    @pytest.mark.asyncio
    async def test_tags_folder(self, builder, pages_dir):
        tree = await builder.build(pages_dir)
        tags = tree.pages[-1]
        assert tags.url == "/tags.html"
        assert tags.title == "All Tags"
        assert tags.is_folder
        assert [ref.url for ref in tags.children] == ["/tags/intro.html", "/tags/web.html"]

        intro = tree.get("/tags/intro.html")
        assert intro.title == "Pages tagged with Intro"
        assert intro.parent == tags.ref
        assert 'href="/blog/post-one.html"' in intro.raw_body
        assert 'href="/blog/post-two.html"' in intro.raw_body
        assert intro.updated_at == "2024-03-04"

    @pytest.mark.asyncio
    async def test_no_tags_no_folder(self, builder, make_tree, tmp_path):
        pages = make_tree({"index.md": "", "a.md": "plain"}, tmp_path / "pages")
        tree = await builder.build(pages)
        assert "/tags.html" not in tree
        assert len(tree.tags) == 0

    @pytest.mark.asyncio
    async def test_tag_links(self, builder, pages_dir):
        tree = await builder.build(pages_dir)
        links = tree.get("/blog/post-two.html").derived["links_to_tags"]
        assert links.startswith('<div class="tags">')
        assert 'class="tag" href="/tags/intro.html"' in links
        assert 'href="/tags/web.html"' in links
        assert tree.get("/about.html").derived["links_to_tags"] == ""

    @pytest.mark.asyncio
    async def test_duplicate_tags_counted_once(self, builder, make_tree, tmp_path):
        pages = make_tree({"index.md": "", "a.md": "---\ntags: [go, go]\n---\n"}, tmp_path / "pages")
        tree = await builder.build(pages)
        assert tree.get("/a.html").tags == ["go"]
        assert len(tree.tags.get("go")) == 1

    @pytest.mark.asyncio
    async def test_tags_sharing_a_slug_share_a_page(self, builder, make_tree, tmp_path):
        pages = make_tree(
            {
                "index.md": "",
                "a.md": "---\ntags: [Go]\n---\n",
                "b.md": "---\ntags: [go]\n---\n",
                "c.md": "---\ntags: [GO, go]\n---\n",
            },
            tmp_path / "pages",
        )
        tree = await builder.build(pages)
        assert len(tree.tags) == 1
        assert [ref.url for ref in tree.tags.get("go")] == ["/a.html", "/b.html", "/c.html"]
        assert tree.get("/c.html").tags == ["GO"]

        tags = tree.get("/tags.html")
        assert [ref.url for ref in tags.children] == ["/tags/go.html"]
        page = tree.get("/tags/go.html")
        assert page.title == "Pages tagged with Go"
        assert page.raw_body.count("<li>") == 3

    def test_tag_index_merge_by_slug(self):
        a = PageRef(title="A", url="/a.html")
        b = PageRef(title="B", url="/b.html")
        first, second = TagIndex(), TagIndex()
        first.add("C++", a)
        second.add("c", b)
        second.add("Web", a)
        first.merge(second)
        assert list(first.items()) == [("C++", [a, b]), ("Web", [a])]
        assert "web" in first

    @pytest.mark.asyncio
    async def test_folders_do_not_register_tags(self, builder, make_tree, tmp_path):
        pages = make_tree(
            {"index.md": "", "sub/config.yaml": "tags: [shared]\n", "sub/a.md": ""},
            tmp_path / "pages",
        )
        tree = await builder.build(pages)
        assert tree.tags.get("shared") == [PageRef(title="A", url="/sub/a.html")]
        assert tree.get("/sub.html").tags == []


# ============================================================
# Errors
# ============================================================


class TestErrors:
    @pytest.mark.asyncio
    async def test_unreadable_subdirectory_is_skipped(self, make_tree, tmp_path, caplog):
        pages = make_tree(
            {"index.md": "", "broken/a.md": "", "ok/b.md": ""},
            tmp_path / "pages",
        )
        tree = await make_builder(FailingStorage("broken")).build(pages)
        assert tree.get("/broken.html").children == []
        assert tree.get("/ok/b.html") is not None
        assert "broken" in caplog.text

    @pytest.mark.asyncio
    async def test_unreadable_root_is_fatal(self, make_tree, tmp_path):
        pages = make_tree({"index.md": ""}, tmp_path / "pages")
        with pytest.raises(SiteError):
            await make_builder(FailingStorage("pages")).build(pages)

    @pytest.mark.asyncio
    async def test_bad_front_matter_is_fatal(self, builder, make_tree, tmp_path):
        pages = make_tree({"index.md": "", "bad.md": "---\ntitle: [x\n---\nbody"}, tmp_path / "pages")
        with pytest.raises(FrontMatterError):
            await builder.build(pages)

    @pytest.mark.asyncio
    async def test_duplicate_url(self, builder, make_tree, tmp_path):
        pages = make_tree({"index.md": "", "blog.md": "", "blog/a.md": ""}, tmp_path / "pages")
        with pytest.raises(DuplicatePageError) as exc_info:
            await builder.build(pages)
        assert exc_info.value.url == "/blog.html"

    @pytest.mark.asyncio
    async def test_index_folder_clashes_with_root_index(self, builder, make_tree, tmp_path):
        pages = make_tree({"index.md": "", "index/a.md": ""}, tmp_path / "pages")
        with pytest.raises(DuplicatePageError) as exc_info:
            await builder.build(pages)
        assert exc_info.value.url == "index.html"

    @pytest.mark.asyncio
    async def test_nested_index_folder_clash(self, builder, make_tree, tmp_path):
        pages = make_tree(
            {"index.md": "", "docs/index.md": "", "docs/index/a.md": ""},
            tmp_path / "pages",
        )
        with pytest.raises(DuplicatePageError) as exc_info:
            await builder.build(pages)
        assert exc_info.value.url == "docs/index.html"
