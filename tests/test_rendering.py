"""Row rendering and the table / WebSocket sinks."""

import pytest

from rollcall.config import settings
from rollcall.models.attendance import AttendanceRow
from rollcall.services.live_view import Inserted, LiveView, Modified, Removed
from rollcall.services.rendering import (
    HEADER_HTML,
    PENDING,
    VISIBLE,
    TableSink,
    WebSocketSink,
    add_size_to_google_profile_pic,
    cache_busted,
    format_record_time,
    render_message,
)

NOW = 1_700_000_000_123.0


class TestMessageRendering:
    def test_newlines_become_line_breaks(self):
        html = render_message(AttendanceRow(text="line one\nline two"), NOW)
        assert html == "line one<br>line two"

    def test_text_is_escaped(self):
        html = render_message(AttendanceRow(text="<b>Maths</b> & more"), NOW)
        assert html == "&lt;b&gt;Maths&lt;/b&gt; &amp; more"

    def test_image_without_text_gets_cache_buster(self):
        html = render_message(AttendanceRow(image_url="https://img.example/p.png?alt=media"), NOW)
        assert html == '<img src="https://img.example/p.png?alt=media&amp;1700000000123">'

    def test_text_wins_over_image(self):
        html = render_message(AttendanceRow(text="Python", image_url="https://img.example/p.png"), NOW)
        assert "img" not in html

    def test_nothing_to_show(self):
        assert render_message(AttendanceRow(), NOW) == ""

    def test_cache_busted_without_query(self):
        assert cache_busted("https://img.example/p.png", NOW) == "https://img.example/p.png?1700000000123"


class TestProfilePic:
    def test_google_pic_gets_size(self):
        url = "https://lh3.googleusercontent.com/a/photo"
        assert add_size_to_google_profile_pic(url) == url + "?sz=150"

    def test_google_pic_with_query_untouched(self):
        url = "https://lh3.googleusercontent.com/a/photo?sz=64"
        assert add_size_to_google_profile_pic(url) == url

    def test_other_hosts_untouched(self):
        assert add_size_to_google_profile_pic("/static/me.png") == "/static/me.png"


class TestRecordTime:
    def test_formats_in_display_timezone(self):
        assert settings.display_timezone == "UTC"
        assert format_record_time(0) == "01/01/1970, 00:00:00"

    def test_missing_key(self):
        assert format_record_time(None) == ""


class TestTableSink:
    def test_live_view_drives_table(self, scheduler):
        table = TableSink(clock=lambda: NOW)
        view = LiveView(table, schedule=scheduler)
        view.apply_batch([
            Inserted("a", AttendanceRow(name="Alice", text="Data Structure", rollno="7", sort_key=100)),
            Inserted("b", AttendanceRow(name="Bob", text="Maths", rollno="3", sort_key=50)),
        ])

        assert table.identities == ["b", "a"]
        assert table.slot("a").state == PENDING
        scheduler.run_all()
        assert table.slot("a").state == VISIBLE

        html = table.to_html()
        assert html.startswith(HEADER_HTML)
        assert html.index('id="b"') < html.index('id="a"')
        assert 'data-subject="datastructure"' in html
        assert 'data-timestamp="100"' in html
        assert '<td class="rollno">7</td>' in html

    def test_placeholder_pic_when_missing(self):
        table = TableSink(clock=lambda: NOW)
        table.insert_at("a", AttendanceRow(name="A", sort_key=1), None)
        assert settings.profile_placeholder_url in table.slot("a").to_html()

    def test_update_refreshes_fields(self):
        table = TableSink(clock=lambda: NOW)
        table.insert_at("a", AttendanceRow(name="A", text="Maths", sort_key=1), None)
        table.update_in_place("a", AttendanceRow(name="A", text="Python", sort_key=1))
        assert table.slot("a").message_html == "Python"

    def test_update_and_remove_of_missing_slot_are_harmless(self):
        table = TableSink(clock=lambda: NOW)
        table.update_in_place("nope", AttendanceRow(name="x"))
        table.remove("nope")
        table.mark_visible("nope")
        assert table.slots == []

    def test_names_are_escaped(self):
        table = TableSink(clock=lambda: NOW)
        table.insert_at("a", AttendanceRow(name="<script>", sort_key=1), None)
        assert "<script>" not in table.slot("a").to_html()


class TestWebSocketSink:
    def drain(self, sink):
        messages = []
        while not sink.queue.empty():
            messages.append(sink.queue.get_nowait())
        return messages

    @pytest.mark.asyncio
    async def test_queues_one_message_per_mutation(self, scheduler):
        sink = WebSocketSink(clock=lambda: NOW)
        view = LiveView(sink, schedule=scheduler)
        view.apply_batch([
            Inserted("a", AttendanceRow(text="Alice", sort_key=100)),
            Inserted("b", AttendanceRow(text="Bob", sort_key=50)),
            Modified("a", AttendanceRow(text="Alice2", sort_key=100)),
            Removed("b"),
        ])
        sink.close()

        messages = self.drain(sink)
        assert [(m["op"], m["id"]) for m in messages[:-1]] == [
            ("insert", "a"),
            ("insert", "b"),
            ("update", "a"),
            ("remove", "b"),
        ]
        assert messages[1]["before"] == "a"
        assert "Alice2" in messages[2]["html"]
        assert messages[-1] is None

    @pytest.mark.asyncio
    async def test_visible_message(self, scheduler):
        sink = WebSocketSink(clock=lambda: NOW)
        view = LiveView(sink, schedule=scheduler)
        view.apply(Inserted("a", AttendanceRow(text="Alice", sort_key=1)))
        scheduler.run_all()
        assert self.drain(sink)[-1] == {"op": "visible", "id": "a"}
