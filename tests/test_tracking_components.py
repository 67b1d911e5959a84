"""Tests for tracking page extraction, signatures, classification and reports."""

import pytest

from src.postwatch.tracking import (
    KeywordSet,
    PageSource,
    SnapshotExtractor,
    StatusClassifier,
    TrackingError,
    available_locales,
    build_signature,
    format_change_report,
    format_event_rows,
    format_latest_event,
    get_keyword_set,
    is_dated,
    register_locale,
    signature_fields,
)
from src.postwatch.tracking.report import (
    CUSTOMS_MARKER,
    CUSTOMS_NOTE,
    DELIVERED_MARKER,
    DELIVERED_NOTE,
    UPDATE_MARKER,
    status_marker,
)

TRACKING_HTML = """
<html>
  <head><script>var message = "item not found";</script></head>
  <body>
    <h1>מעקב משלוחים</h1>
    <table>
      <tr><th>תאריך</th><th>סטטוס</th><th>מיקום</th></tr>
      <tr><td>01/02/2026</td><td>התקבל במרכז מיון</td><td>מודיעין</td></tr>
      <tr><td>05/02/2026</td><td>נמסר לנמען</td><td>תל אביב</td></tr>
    </table>
  </body>
</html>
"""


class TestKeywordRegistry:
    """Test locale keyword strategies."""

    def test_default_set_merges_hebrew_and_english(self):
        """Test that the default keyword set covers both built-in locales."""
        keywords = get_keyword_set()

        assert "נמסר לנמען" in keywords.delivered
        assert "delivered" in keywords.delivered
        assert "מכס" in keywords.customs
        assert "not found" in keywords.not_found

    def test_unknown_locale_raises(self):
        """Test that asking for an unregistered locale fails loudly."""
        with pytest.raises(TrackingError, match="Unknown keyword locale"):
            get_keyword_set("xx")

    def test_register_locale_merges_into_existing(self):
        """Test that registering an existing locale extends it."""
        register_locale("en", KeywordSet(delivered=("handed over",)))

        keywords = get_keyword_set("en")
        assert keywords.delivered == ("delivered", "handed over")

    def test_register_locale_replace(self):
        """Test that replace=True discards the previous keywords."""
        register_locale("en", KeywordSet(delivered=("handed over",)), replace=True)

        assert get_keyword_set("en").delivered == ("handed over",)

    def test_register_new_locale(self):
        """Test adding a brand new carrier language."""
        register_locale("ru", KeywordSet(delivered=("вручено",)))

        assert "ru" in available_locales()
        assert get_keyword_set("ru", "en").delivered == ("вручено", "delivered")

    def test_merge_drops_duplicates(self):
        """Test that merged sets keep first-seen order without repeats."""
        first = KeywordSet(customs=("customs", "held"))
        second = KeywordSet(customs=("held", "inspection"))

        assert first.merge(second).customs == ("customs", "held", "inspection")


class TestPageSource:
    """Test HTML to page source conversion."""

    def test_from_html_collects_table_rows(self):
        """Test that every table row becomes a row of cell texts."""
        source = PageSource.from_html(TRACKING_HTML)

        assert len(source.rows) == 3
        assert source.rows[1] == ("01/02/2026", "התקבל במרכז מיון", "מודיעין")

    def test_from_html_ignores_scripts(self):
        """Test that script bodies never reach the visible text."""
        source = PageSource.from_html(TRACKING_HTML)

        assert "item not found" not in source.text
        assert "מעקב משלוחים" in source.text

    def test_from_html_prefers_rendered_text(self):
        """Test that browser-rendered text is used verbatim when supplied."""
        source = PageSource.from_html(TRACKING_HTML, text="rendered body")

        assert source.text == "rendered body"

    def test_multiline_cell_keeps_line_break(self):
        """Test that cells with nested blocks keep their line structure."""
        html = "<table><tr><td>01/02/2026</td><td>first<br>second</td></tr></table>"
        source = PageSource.from_html(html)

        assert source.rows[0] == ("01/02/2026", "first\nsecond")

    def test_inline_markup_cell_stays_on_one_line(self):
        """Test that inline elements inside a cell do not split its text."""
        html = (
            "<table><tr><td>02/01/2026</td><td>נמסר <b>לנמען</b></td>"
            "<td>חיפה</td></tr></table>"
        )

        source = PageSource.from_html(html)

        assert source.rows[0] == ("02/01/2026", "נמסר לנמען", "חיפה")

    def test_wrapped_source_text_is_collapsed(self):
        """Test that newlines and indentation in the markup collapse to spaces."""
        html = (
            "<table><tr><td>02/01/2026</td><td>\n  בתהליך מיון\n </td>"
            "<td>יקנעם\n   עילית</td></tr></table>"
        )

        source = PageSource.from_html(html)

        assert source.rows[0] == ("02/01/2026", "בתהליך מיון", "יקנעם עילית")

    def test_comments_are_not_text(self):
        html = "<table><tr><td>02/01/2026<!-- cached --></td><td>בדרך</td></tr></table>"

        assert PageSource.from_html(html).rows[0] == ("02/01/2026", "בדרך")


class TestSnapshotExtractor:
    """Test event extraction rules."""

    @pytest.fixture
    def extractor(self):
        return SnapshotExtractor()

    def test_extract_html_tracking_table(self, extractor):
        """Test a standard results table."""
        snapshot = extractor.extract_html(TRACKING_HTML)

        assert snapshot.found is True
        assert snapshot.events[-1] == ("05/02/2026", "נמסר לנמען", "תל אביב")
        assert len(snapshot.events) == 3

    def test_inline_status_cell_reaches_signature(self, extractor):
        """Test that a status cell with inline markup is kept and classified."""
        html = (
            "<html><body><table>"
            "<tr><td>01/01/2026</td><td>בדרך</td><td>מודיעין</td></tr>"
            "<tr><td>02/01/2026</td><td>נמסר <b>לנמען</b></td><td>חיפה</td></tr>"
            "</table></body></html>"
        )

        snapshot = extractor.extract_html(html)

        assert build_signature(snapshot.events, snapshot.raw) == (
            "02/01/2026|נמסר לנמען|חיפה"
        )
        assert StatusClassifier().classify(snapshot.events, snapshot.raw).delivered

    def test_not_found_message_wins(self, extractor):
        """Test that a no-data message overrides any rows on the page."""
        source = PageSource(
            rows=(("01/02/2026", "stale row"),),
            text="Item Not Found. Please check the number.",
        )

        snapshot = extractor.extract(source)

        assert snapshot.found is False
        assert snapshot.events == ()
        assert snapshot.raw == ""

    def test_hebrew_not_found_message(self, extractor):
        """Test the Hebrew no-data message."""
        snapshot = extractor.extract(PageSource(text="הפריט לא נמצא במערכת"))

        assert snapshot.found is False

    def test_cells_filtered(self, extractor):
        """Test that short and multi-line cells are dropped from a row."""
        source = PageSource(
            rows=(("01/02/2026", "x", "menu\nfooter", "בדרך", "  חיפה  "),),
        )

        snapshot = extractor.extract(source)

        assert snapshot.events == (("01/02/2026", "בדרך", "חיפה"),)

    def test_single_cell_rows_are_not_events(self, extractor):
        """Test that rows with fewer than two usable cells are skipped."""
        source = PageSource(rows=(("Tracking history",), ("a", "b")), text="")

        snapshot = extractor.extract(source)

        assert snapshot.events == ()
        assert snapshot.found is False

    def test_sections_used_when_no_rows(self, extractor):
        """Test the section fallback for pages without row markup."""
        source = PageSource(
            sections=("short", "Your parcel arrived at the sorting centre"),
        )

        snapshot = extractor.extract(source)

        assert snapshot.events == (("Your parcel arrived at the sorting centre",),)
        assert snapshot.found is True

    def test_found_from_text_cues_without_events(self, extractor):
        """Test that result cues mark the page as found with no events."""
        snapshot = extractor.extract(PageSource(text="Shipment in Transit"))

        assert snapshot.found is True
        assert snapshot.events == ()
        assert snapshot.raw == "Shipment in Transit"

    def test_found_from_date_in_text(self, extractor):
        """Test that a date anywhere in the text counts as tracking data."""
        snapshot = extractor.extract(PageSource(text="עודכן 05.02.2026"))

        assert snapshot.found is True

    def test_page_without_cues_is_not_found(self, extractor):
        """Test that an unrelated page yields no data."""
        snapshot = extractor.extract(PageSource(text="Welcome to our website"))

        assert snapshot.found is False

    def test_raw_text_is_truncated(self):
        """Test the raw text limit."""
        extractor = SnapshotExtractor(raw_limit=100)
        text = "transit " * 50

        snapshot = extractor.extract(PageSource(text=text))

        assert len(snapshot.raw) == 100

    def test_custom_keywords(self):
        """Test an extractor driven by a non-default keyword set."""
        extractor = SnapshotExtractor(
            keywords=KeywordSet(not_found=("не найдено",), result_cues=("вручено",))
        )

        assert extractor.extract(PageSource(text="не найдено")).found is False
        assert extractor.extract(PageSource(text="вручено")).found is True


class TestSignature:
    """Test signature construction."""

    def test_last_dated_event(self):
        """Test that the latest dated event is the signature."""
        events = [("01/01/2026", "Accepted"), ("02/01/2026", "In transit")]

        assert build_signature(events, None) == "02/01/2026|In transit"

    def test_undated_trailing_rows_ignored(self):
        """Test that decoration rows after the history do not win."""
        events = [
            ("01/01/2026", "Accepted"),
            ("02/01/2026", "Delivered"),
            ("Contact us", "Privacy"),
        ]

        assert build_signature(events, None) == "02/01/2026|Delivered"

    def test_no_dated_events_uses_last_record(self):
        """Test the fallback to the final record."""
        events = [("Accepted", "Modiin"), ("In transit", "Tel Aviv")]

        assert build_signature(events, "ignored") == "In transit|Tel Aviv"

    def test_raw_last_dated_line(self):
        """Test raw text fallback to the last dated line."""
        raw = "header\n01/01/2026 בדרך\n02.01.2026 נמסר\nfooter text"

        assert build_signature((), raw) == "02.01.2026 נמסר"

    def test_raw_last_hebrew_line(self):
        """Test raw text fallback to the last Hebrew status line."""
        raw = "Menu\nהחבילה בדרך אליך\nok\nContact us"

        assert build_signature((), raw) == "החבילה בדרך אליך"

    def test_raw_prefix_collapsed(self):
        """Test the final raw fallback with whitespace collapsed."""
        assert build_signature(None, "Hello   world\n\nfoo") == "Hello world foo"

    def test_empty_input(self):
        """Test that a signature is always produced."""
        assert build_signature(None, None) == ""
        assert build_signature([], "") == ""

    def test_deterministic(self, delivered_snapshot):
        """Test that identical input gives identical signatures."""
        first = build_signature(delivered_snapshot.events, delivered_snapshot.raw)
        second = build_signature(delivered_snapshot.events, delivered_snapshot.raw)

        assert first == second

    def test_is_dated(self):
        assert is_dated(("x", "05.02.2026"))
        assert not is_dated(("5/2/26", "x"))

    def test_signature_display(self):
        """Test the human-readable form of a stored signature."""
        assert signature_fields("a|b|c") == ["a", "b", "c"]
        assert signature_fields(None) == []
        assert format_latest_event("02/01/2026|In transit") == "02/01/2026 · In transit"
        assert format_latest_event(None) == ""


class TestStatusClassifier:
    """Test delivered and customs classification."""

    @pytest.fixture
    def classifier(self):
        return StatusClassifier()

    def test_delivered_from_raw_text(self, classifier):
        """Test delivery detection on raw text alone."""
        flags = classifier.classify((), "נמסר לנמען")

        assert flags.delivered is True
        assert flags.in_customs is False

    def test_customs_case_insensitive(self, classifier):
        """Test that customs matching ignores case."""
        flags = classifier.classify((("10/02/2026", "Held by CUSTOMS"),), "")

        assert flags.in_customs is True
        assert flags.delivered is False

    def test_delivered_english_capitalized(self, classifier):
        """Test that an English delivery line is recognized regardless of case."""
        flags = classifier.classify((("12/02/2026", "Delivered to addressee"),), None)

        assert flags.delivered is True

    def test_flags_are_independent(self, classifier):
        """Test that a page may report customs and delivery together."""
        flags = classifier.classify((), "Cleared customs, delivered")

        assert flags.delivered is True
        assert flags.in_customs is True

    def test_transit_page(self, classifier, transit_snapshot):
        """Test that an in-transit page raises neither flag."""
        flags = classifier.classify(transit_snapshot.events, transit_snapshot.raw)

        assert flags.delivered is False
        assert flags.in_customs is False

    def test_missing_input(self, classifier):
        """Test absent events and raw text."""
        flags = classifier.classify(None, None)

        assert flags.delivered is False
        assert flags.in_customs is False


class TestChangeReport:
    """Test notification text formatting."""

    def test_marker_priority(self):
        """Test that exactly one marker is chosen, delivered first."""
        assert status_marker(True, True) == (DELIVERED_MARKER, DELIVERED_NOTE)
        assert status_marker(False, True) == (CUSTOMS_MARKER, CUSTOMS_NOTE)
        assert status_marker(False, False) == (UPDATE_MARKER, None)

    def test_delivered_report(self, delivered_snapshot):
        """Test the report for a delivered package."""
        message = format_change_report(
            "RR123456789IL",
            "Headphones",
            "05/02/2026|נמסר לנמען|תל אביב",
            delivered_snapshot.events,
            delivered=True,
            in_customs=False,
        )

        lines = message.split("\n")
        assert lines[0] == "✅ Israel Post Update"
        assert lines[1] == "RR123456789IL — Headphones"
        assert "05/02/2026 · נמסר לנמען · תל אביב" in lines
        assert lines[-1] == DELIVERED_NOTE
        assert CUSTOMS_MARKER not in message

    def test_customs_report(self):
        """Test the report for a package held in customs."""
        events = (("10/02/2026", "Held by customs", "Ben Gurion"),)

        message = format_change_report(
            "RR1", "Shoes", "10/02/2026|Held by customs|Ben Gurion", events,
            delivered=False, in_customs=True,
        )

        assert message.startswith(CUSTOMS_MARKER)
        assert message.endswith(CUSTOMS_NOTE)

    def test_only_recent_events(self):
        """Test that at most the three latest dated events are listed."""
        events = tuple((f"0{day}/02/2026", f"event {day}") for day in range(1, 6))

        message = format_change_report(
            "RR1", "Shoes", "05/02/2026|event 5", events, False, False
        )

        assert "event 1" not in message
        assert "event 2" not in message
        assert "03/02/2026 · event 3" in message
        assert "05/02/2026 · event 5" in message

    def test_falls_back_to_signature(self):
        """Test the body when no dated events are available."""
        message = format_change_report("RR1", "Shoes", "In transit|Haifa", (), False, False)

        assert message.startswith(UPDATE_MARKER)
        assert message.endswith("In transit · Haifa")

    def test_format_event_rows(self):
        assert format_event_rows([("a", "b"), ("c",)]) == ["a · b", "c"]
