"""
LiveView Client -- Session Tests

A session turns user actions into frames and folds every reply and broadcast
the caller hands back into its Rendered document.
"""

import json

import pytest

from liveview.client.session import LiveViewSession, MissingMetadata

PAGE = """<html>
<head><meta name="csrf-token" content="csrf-abc"><title>Lists | Todo Lister</title></head>
<body><div id="phx-F1" data-phx-main data-phx-session="SESSION" data-phx-static="STATIC"><p>dead</p></div></body>
</html>"""

URL = "http://localhost:4000/lists"


def frame(join_ref, ref, event, payload, topic="lv:phx-F1"):
    return json.dumps([join_ref, ref, topic, event, payload])


@pytest.fixture
def session():
    return LiveViewSession(URL, PAGE)


@pytest.fixture
def joined(session):
    session.join()
    session.receive(
        frame("1", "1", "phx_reply", {"status": "ok", "response": {"rendered": {"0": "Milk", "s": ["<li>", "</li>"]}}})
    )
    return session


class TestSetup:
    def test_missing_metadata(self):
        with pytest.raises(MissingMetadata, match="phx_session"):
            LiveViewSession(URL, '<meta name="csrf-token" content="x"><div id="a" data-phx-main></div>')

    def test_topic_and_url(self, session):
        assert session.topic == "lv:phx-F1"
        assert session.websocket_url == "ws://localhost:4000/live/websocket?vsn=2.0.0&_csrf_token=csrf-abc"

    def test_join_frame(self, session):
        join_ref, ref, topic, event, payload = json.loads(session.join())
        assert (join_ref, ref, topic, event) == ("1", "1", "lv:phx-F1", "phx_join")
        assert payload == {
            "url": URL,
            "session": "SESSION",
            "static": "STATIC",
            "params": {"_csrf_token": "csrf-abc", "_mounts": 0},
        }


class TestPushes:
    def test_click(self, joined):
        payload = json.loads(joined.push_click("toggle", {"id": "7"}))[4]
        assert payload == {"type": "click", "event": "toggle", "value": {"id": "7"}}

    def test_click_default_value(self, joined):
        assert json.loads(joined.push_click("add"))[4]["value"] == {}

    def test_form(self, joined):
        payload = json.loads(joined.push_form("save", "title=Groceries"))[4]
        assert payload == {"type": "form", "event": "save", "value": "title=Groceries"}

    def test_blur(self, joined):
        assert json.loads(joined.push_blur("save_title", {"value": "x"}))[4]["type"] == "blur"

    def test_keyup(self, joined):
        payload = json.loads(joined.push_keyup("search", "Enter", "milk"))[4]
        assert payload == {"type": "keyup", "event": "search", "value": {"key": "Enter", "value": "milk"}}

    def test_heartbeat_and_leave(self, joined):
        assert json.loads(joined.heartbeat())[2] == "phoenix"
        assert json.loads(joined.leave())[3] == "phx_leave"


class TestReceive:
    def test_join_reply_renders(self, joined):
        assert '<div id="phx-F1" data-phx-main data-phx-session="SESSION" data-phx-static="STATIC"><li>Milk</li></div>' in joined.html
        assert "dead" not in joined.html

    def test_event_reply_applies_diff(self, joined):
        ref = json.loads(joined.push_click("rename"))[1]
        joined.receive(frame("1", ref, "phx_reply", {"status": "ok", "response": {"diff": {"0": "Eggs"}}}))
        assert "<li>Eggs</li>" in joined.html

    def test_broadcast_diff(self, joined):
        joined.receive(frame(None, None, "diff", {"0": "Bread", "t": "Bread"}))
        assert "<li>Bread</li>" in joined.html
        assert "<title>Bread | Todo Lister</title>" in joined.html

    def test_error_reply_leaves_document(self, joined):
        before = joined.html
        ref = json.loads(joined.push_click("boom"))[1]
        joined.receive(frame("1", ref, "phx_reply", {"status": "error", "response": {"reason": "crash"}}))
        assert joined.html == before

    def test_user_callback_sees_reply(self, joined):
        seen = []
        ref = json.loads(joined.push_click("rename", callback=seen.append))[1]
        joined.receive(frame("1", ref, "phx_reply", {"status": "ok", "response": {"diff": {"0": "Tea"}}}))
        assert seen[0].payload["response"]["diff"] == {"0": "Tea"}
        assert "<li>Tea</li>" in joined.html

    def test_other_broadcasts_ignored(self, joined):
        before = joined.html
        joined.receive(frame(None, None, "presence_diff", {"joins": {}}))
        assert joined.html == before
