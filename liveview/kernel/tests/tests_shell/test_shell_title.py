"""
LiveView Kernel -- Shell Title Tests

Servers push titles with the "t" key. After the first render a server may
send only the variable part; a prefix or suffix known from the document
(data-prefix / data-suffix attributes, or a "Page | Site" title) is put back.
The suffix is appended unless the title already ends with it or is the bare
site name.
"""

from liveview.kernel.shell import Shell, detect_title_suffix, normalize_title


def document(title_tag):
    return f'<html><head>{title_tag}</head><body><div id="m" data-phx-main>x</div></body></html>'


class TestTitleDetection:
    def test_title_read_from_document(self, page):
        assert Shell(page).title == "TodoLister"

    def test_title_whitespace_normalized(self):
        assert Shell(document("<title>\n   Home\n   | Site\n</title>")).title == "Home | Site"

    def test_no_title(self):
        shell = Shell('<div id="m" data-phx-main></div>')
        assert shell.title is None

    def test_detect_suffix(self):
        assert detect_title_suffix("Home | Todo Lister") == " | Todo Lister"
        assert detect_title_suffix("A | B | C") == " | B | C"
        assert detect_title_suffix("Plain") is None

    def test_normalize(self):
        assert normalize_title("  a \n\t b ") == "a b"


class TestPutTitle:
    def test_plain_title_replaced(self, page):
        shell = Shell(page)
        assert shell.put_title("Lists") == "Lists"
        assert "<title>Lists</title>" in shell.splice("")

    def test_suffix_restored(self):
        shell = Shell(document("<title>Home | Todo Lister</title>"))
        assert shell.put_title("Lists") == "Lists | Todo Lister"
        assert "<title>Lists | Todo Lister</title>" in shell.splice("")

    def test_full_title_kept(self):
        shell = Shell(document("<title>Home | Todo Lister</title>"))
        assert shell.put_title("About | Todo Lister") == "About | Todo Lister"

    def test_bare_site_name_kept(self):
        shell = Shell(document("<title>Home | Todo Lister</title>"))
        assert shell.put_title("Todo Lister") == "Todo Lister"

    def test_suffix_must_end_the_title(self):
        shell = Shell(document("<title>Home | Todo Lister</title>"))
        assert shell.put_title("Docs | Todo Lister FAQ") == "Docs | Todo Lister FAQ | Todo Lister"

    def test_suffix_attribute(self):
        shell = Shell(document('<title data-suffix=" · Phoenix Framework">Home · Phoenix Framework</title>'))
        assert shell.put_title("Listing") == "Listing · Phoenix Framework"

    def test_prefix_attribute(self):
        shell = Shell(document('<title data-prefix="App: ">App: Home</title>'))
        assert shell.put_title("Lists") == "App: Lists"
        assert shell.put_title("App: Again") == "App: Again"

    def test_title_inside_mount_is_not_spliced_twice(self):
        html = '<div id="m" data-phx-main><title>inner</title></div>'
        shell = Shell(html)
        shell.put_title("changed")
        assert shell.splice("X") == '<div id="m" data-phx-main>X</div>'
