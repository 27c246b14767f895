"""
LiveView Kernel -- Rendered Session Tests

End-to-end: a Rendered instance fed the sequence of messages one connection
receives. Covers the todo-list flow (title edit, title save, add item), the
full-document output, component updates, and reconnect semantics.
"""

import pytest

from liveview.kernel.rendered import Rendered, extract

TITLE_EDIT = {
    "3": {
        "0": ' value="New Todo List"',
        "s": [
            '\n                <form phx-submit="save_title" class="w-full">\n'
            '                  <input type="text" name="title"',
            ' class="w-full" phx-blur="save_title">\n                </form>\n              ',
        ],
    },
}

TITLE_SAVE = {
    "3": {
        "s": ['\n                <h1 class="text-3xl font-bold">\n                  Updated Todo List via K6\n                </h1>\n              '],
    },
}

ADD_ITEM = {
    "p": {
        "0": [
            "\n              <div",
            '>\n                <input value="New task"',
            ">\n              </div>\n            ",
        ],
        "1": ['<div id="items">', "</div>"],
    },
    "5": {
        "0": {
            "k": {
                "0": {"0": ' data-item-id="test-item-id"', "1": ' class="item-class"', "s": 0},
                "kc": 1,
            },
        },
        "s": 1,
    },
}


def occurrences(html, text):
    return html.count(text)


@pytest.fixture
def rendered(page):
    return Rendered(page)


class TestTodoFlow:
    def test_initial_document_drops_server_content(self, rendered):
        html = rendered.current_html()
        assert len(html) > 100
        assert "New Todo List" not in html
        assert rendered.view_id == "phx-test"

    def test_title_edit(self, rendered):
        html = rendered.apply_diff(TITLE_EDIT)
        assert "<form" in html
        assert occurrences(html, "New Todo List") == 1

    def test_title_save(self, rendered):
        rendered.apply_diff(TITLE_EDIT)
        html = rendered.apply_diff(TITLE_SAVE)
        assert "<form" not in html
        assert occurrences(html, "Updated Todo List via K6") == 1

    def test_add_item_after_title_change(self, rendered):
        rendered.apply_diff(TITLE_EDIT)
        rendered.apply_diff(TITLE_SAVE)
        html = rendered.apply_diff(ADD_ITEM)
        assert occurrences(html, "Updated Todo List via K6") == 1
        assert 'value="New task"' in html
        assert 'data-item-id="test-item-id"' in html
        assert '<div id="items">' in html

    def test_no_duplication_in_final_document(self, rendered):
        for diff in (TITLE_EDIT, TITLE_SAVE, ADD_ITEM):
            rendered.apply_diff(diff)
        html = rendered.current_html()
        assert occurrences(html, "Updated Todo List via K6") == 1
        assert occurrences(html, "<body") == 1
        assert occurrences(html, "</body>") == 1

    def test_content_html_is_mount_inner_markup(self, rendered):
        rendered.apply_initial({"0": "hi", "s": ["<p>", "</p>"]})
        assert rendered.content_html() == "<p>hi</p>"
        assert '<div id="phx-test" data-phx-main data-phx-session="test"><p>hi</p></div>' in rendered.current_html()


class TestInitialAndDiffs:
    def test_apply_initial_replaces_state(self, rendered):
        rendered.apply_initial({"0": "A", "c": {"1": {"s": ["c1"]}}, "s": ["", ""]})
        rendered.apply_initial({"0": "B", "s": ["<b>", "</b>"]})
        assert rendered.content_html() == "<b>B</b>"
        assert rendered.state.components == {}

    def test_component_update(self):
        rendered = Rendered('<div id="t" data-phx-main></div>')
        rendered.apply_initial(
            {
                "0": 1,
                "c": {"1": {"0": "Initial content", "s": ['<div class="component">', "</div>"]}},
                "s": ["<section>", "</section>"],
            }
        )
        rendered.apply_diff({"c": {"1": {"0": "Updated content", "s": ['<div class="component updated">', "</div>"]}}})
        assert rendered.content_html() == '<section><div class="component updated">Updated content</div></section>'

    def test_component_partial_update(self):
        rendered = Rendered()
        rendered.apply_initial({"0": 1, "c": {"1": {"0": "a", "1": "b", "s": ["", "-", ""]}}, "s": ["", ""]})
        assert rendered.apply_diff({"c": {"1": {"1": "B"}}}) == "a-B"

    def test_message_table_reaches_components(self):
        rendered = Rendered()
        html = rendered.apply_initial(
            {
                "p": {"0": ["<li>", "</li>"]},
                "c": {"1": {"0": {"0": "x", "s": 0}, "s": ["<div>", "</div>"]}},
                "0": 1,
                "s": ["<main>", "</main>"],
            }
        )
        assert html == "<main><div><li>x</li></div></main>"
        assert rendered.warnings == []

    def test_non_ascii_digit_key_is_ignored(self, rendered):
        rendered.apply_initial({"0": "a", "s": ["<p>", "</p>"]})
        rendered.apply_diff({"0": "b", "\u00b2": "y"})
        assert rendered.content_html() == "<p>b</p>"

    def test_render_component(self):
        rendered = Rendered()
        rendered.apply_initial({"c": {"1": {"0": "x", "s": ["<b>", "</b>"]}, "2": {"0": "y", "s": 1}}, "s": [""]})
        assert rendered.render_component(2) == "<b>y</b>"
        assert rendered.render_component(3) == ""

    def test_no_mount_returns_content(self):
        rendered = Rendered("<p>no mount here</p>")
        assert rendered.apply_initial({"0": "x", "s": ["<i>", "</i>"]}) == "<i>x</i>"

    def test_empty_diff_is_noop(self, rendered):
        rendered.apply_initial({"0": "Hello", "1": "World", "s": ["<p>", " ", "</p>"]})
        before = rendered.current_html()
        assert rendered.apply_diff({}) == before

    def test_non_dict_message_is_ignored(self, rendered):
        rendered.apply_initial({"0": "kept", "s": ["", ""]})
        html = rendered.apply_diff(["not", "a", "diff"])
        assert rendered.content_html() == "kept"
        assert [warning.code for warning in rendered.warnings] == ["MALFORMED_DIFF"]
        assert rendered.apply_diff(None) == html

    def test_warnings_reset_each_cycle(self, rendered):
        rendered.apply_initial({"0": 9, "s": ["", ""]})
        assert [warning.code for warning in rendered.warnings] == ["UNRESOLVED_COMPONENT"]
        rendered.apply_diff({"0": "fine"})
        assert rendered.warnings == []

    def test_to_dict(self):
        rendered = Rendered()
        rendered.apply_initial({"0": 1, "c": {"1": {"0": "x", "s": ["<b>", "</b>"]}}, "s": ["", ""]})
        assert rendered.to_dict() == {
            "0": 1,
            "s": ["", ""],
            "c": {"1": {"0": "x", "s": ["<b>", "</b>"]}},
        }


class TestTitleAndReply:
    def test_title_updates_document(self, rendered):
        html = rendered.apply_diff({"t": "Groceries", "0": "x"})
        assert rendered.title == "Groceries"
        assert "<title>Groceries</title>" in html

    def test_reply_is_passed_through(self, rendered):
        rendered.apply_diff({"r": {"saved": True}})
        assert rendered.last_reply == {"saved": True}
        rendered.apply_diff({"0": "x"})
        assert rendered.last_reply is None

    def test_extract(self):
        diff, title, reply, events = extract({"0": "a", "t": "T", "r": 1, "e": [["ping", {}]]})
        assert diff == {"0": "a"}
        assert title == "T"
        assert reply == 1
        assert events == [["ping", {}]]

    def test_extract_ignores_bad_title_and_events(self):
        diff, title, _, events = extract({"t": 5, "e": "nope"})
        assert diff == {}
        assert title is None
        assert events == []
