import datetime as dt
import uuid
from zoneinfo import ZoneInfo

import pytest

from postpress import errors
from postpress.events import markdown_events
from postpress.metadata import (
    Metadata,
    MetadataEntry,
    get_slug,
    parse_line,
    parse_metadata_block,
    parse_zoned,
)

CONTENT_UUID = "0e9a1c5e-6d4b-4a87-9d4c-3f1c2a7e8b10"
PARIS = ZoneInfo("Europe/Paris")


class TestParseZoned:
    def test_offset_and_zone(self):
        value = parse_zoned("2024-03-05T10:00:00+01:00[Europe/Paris]")
        assert value == dt.datetime(2024, 3, 5, 10, 0, tzinfo=PARIS)
        assert value.tzinfo.key == "Europe/Paris"

    def test_zone_without_offset(self):
        value = parse_zoned("2024-07-01T08:30:00[Europe/Paris]")
        assert value.utcoffset() == dt.timedelta(hours=2)

    def test_utc_designator(self):
        value = parse_zoned("2024-03-05T10:00:00Z[UTC]")
        assert value == dt.datetime(2024, 3, 5, 10, 0, tzinfo=dt.timezone.utc)
        assert value.tzinfo.key == "UTC"

    def test_utc_designator_is_converted_to_zone(self):
        value = parse_zoned("2024-03-05T10:00:00Z[Europe/Paris]")
        assert value == dt.datetime(2024, 3, 5, 11, 0, tzinfo=PARIS)
        assert value.tzinfo.key == "Europe/Paris"

    def test_zone_annotation_is_required(self):
        with pytest.raises(ValueError):
            parse_zoned("2024-03-05T10:00:00+01:00")

    def test_offset_must_match_zone(self):
        with pytest.raises(ValueError):
            parse_zoned("2024-03-05T10:00:00+05:00[Europe/Paris]")

    def test_unknown_zone(self):
        with pytest.raises(ValueError):
            parse_zoned("2024-03-05T10:00:00[Mars/Olympus_Mons]")

    def test_ambiguous_time_uses_offset_to_pick_fold(self):
        # 02:30 happens twice when Paris leaves summer time
        later = parse_zoned("2024-10-27T02:30:00+01:00[Europe/Paris]")
        earlier = parse_zoned("2024-10-27T02:30:00+02:00[Europe/Paris]")
        assert later.fold == 1
        assert earlier.fold == 0
        assert later.astimezone(dt.timezone.utc) > earlier.astimezone(dt.timezone.utc)


class TestParseLine:
    def test_title_strips_quotes(self):
        assert parse_line('title = "Hello = World"') == MetadataEntry("title", "Hello = World")

    def test_key_is_case_insensitive(self):
        assert parse_line(f'UUID = "{CONTENT_UUID}"') == MetadataEntry("uuid", uuid.UUID(CONTENT_UUID))

    def test_date(self):
        entry = parse_line("date = 2024-03-05T10:00:00+01:00[Europe/Paris]")
        assert entry.key == "date"
        assert entry.value.day == 5

    def test_missing_delimiter(self):
        with pytest.raises(errors.NoDelimiter) as excinfo:
            parse_line("title: nope")
        assert excinfo.value.line == "title: nope"

    def test_unknown_tag(self):
        with pytest.raises(errors.UnknownTag) as excinfo:
            parse_line('author = "me"')
        assert excinfo.value.key == "author"

    def test_bad_date_value(self):
        with pytest.raises(errors.MetadataValueError) as excinfo:
            parse_line("date = yesterday")
        assert excinfo.value.key == "date"
        assert isinstance(excinfo.value.cause, ValueError)

    def test_bad_uuid_value(self):
        with pytest.raises(errors.MetadataValueError):
            parse_line('uuid = "not-a-uuid"')


class TestMetadataBlock:
    SOURCE = (
        "+++\n"
        'title = "First"\n'
        "\n"
        "date = 2024-03-05T10:00:00+01:00[Europe/Paris]\n"
        f'uuid = "{CONTENT_UUID}"\n'
        "+++\n"
        "\n"
        "title = not metadata\n"
    )

    def test_reads_first_block_only(self):
        entries = parse_metadata_block(markdown_events(self.SOURCE))
        assert [entry.key for entry in entries] == ["title", "date", "uuid"]

    def test_metadata_from_events(self):
        metadata = Metadata.from_events(markdown_events(self.SOURCE))
        assert metadata.title == "First"
        assert metadata.uuid == uuid.UUID(CONTENT_UUID)
        assert metadata.date.year == 2024

    def test_document_without_block(self):
        assert parse_metadata_block(markdown_events("Just text.\n")) == []

    def test_missing_field(self):
        with pytest.raises(errors.MissingMetadata) as excinfo:
            Metadata.from_entries([MetadataEntry("title", "Only a title")])
        assert excinfo.value.key == "date"

    def test_duplicate_field(self):
        entries = [MetadataEntry("title", "One"), MetadataEntry("title", "Two")]
        with pytest.raises(errors.DuplicateMetadata):
            Metadata.from_entries(entries)


class TestGetSlug:
    DATE = dt.datetime(2024, 3, 5, 10, 0, tzinfo=PARIS)

    def test_strips_date_prefix(self):
        assert get_slug("2024-03-05-hello-world", self.DATE) == "hello-world"

    def test_slugifies_remainder(self):
        assert get_slug("2024-03-05-Hello_World!-Café", self.DATE) == "hello-world-cafe"

    @pytest.mark.parametrize(
        ("identity", "error"),
        [
            ("2023-03-05-post", errors.YearMismatch),
            ("2024-04-05-post", errors.MonthMismatch),
            ("2024-03-06-post", errors.DayMismatch),
            ("post", errors.ConvertYear),
            ("2024-march-05-post", errors.ConvertMonth),
            ("2024-03-5th-post", errors.ConvertDay),
            ("2024", errors.NoMonth),
            ("2024-03", errors.NoDay),
            ("2024-03-05", errors.EmptySlug),
        ],
    )
    def test_errors(self, identity, error):
        with pytest.raises(error) as excinfo:
            get_slug(identity, self.DATE)
        assert excinfo.value.identity == identity

    def test_day_mismatch_against_metadata_date(self):
        with pytest.raises(errors.DayMismatch):
            get_slug("2024-03-05-post", dt.datetime(2024, 3, 6, tzinfo=PARIS))

    def test_compares_in_document_time_zone(self):
        # already March 6th in UTC, still March 5th in New York
        late = parse_zoned("2024-03-05T23:30:00-05:00[America/New_York]")
        assert get_slug("2024-03-05-late-night", late) == "late-night"
