"""Tests for the media processing metadata handler."""

import pytest

from hubtrigger.handlers import media
from hubtrigger.host import ChildToManyParentsRelation, PersistenceError
from hubtrigger.schemas import (
    Allow,
    AllowWithMutation,
    EventContext,
    EventKind,
    SetProperty,
)

ASSET_ID = 3000
MASTER_FILE_ID = 3001
RENDITION_ID = 3002


@pytest.fixture
def media_host(host):
    """Hub with an asset, its master file and a rendition."""
    host.add_entity(ASSET_ID, properties={"Metadata": None})
    host.add_entity(
        MASTER_FILE_ID,
        definition="M.File",
        relations={"MasterFile": ChildToManyParentsRelation("MasterFile", [ASSET_ID])},
    )
    host.add_entity(
        RENDITION_ID,
        definition="M.File",
        relations={"MasterFile": ChildToManyParentsRelation("MasterFile", [])},
    )
    return host


def _context(host, file_id, metadata):
    return EventContext(
        event_kind=EventKind.PROCESSING,
        asset=host.reference(ASSET_ID),
        file=host.reference(file_id),
        metadata_properties=metadata,
    )


class TestToCsv:
    """Tests for the metadata serializer."""

    def test_header_and_value_rows(self):
        """Keys form the header row, values the data row, in order."""
        assert media.to_csv({"A": 1, "B": "x,y"}) == 'A, B\n1, "x,y"'

    def test_insertion_order_kept(self):
        assert media.to_csv({"Z": 1, "A": 2}) == "Z, A\n1, 2"

    def test_comma_in_key_quoted(self):
        assert media.to_csv({"Make, Model": "R5"}) == '"Make, Model"\nR5'

    def test_plain_values_unquoted(self):
        assert media.to_csv({"Width": 1920, "Height": 1080}) == "Width, Height\n1920, 1080"

    def test_to_csv_value(self):
        assert media.to_csv_value("a,b") == '"a,b"'
        assert media.to_csv_value(3.5) == "3.5"


class TestMediaHandler:
    """Tests for the derived-field aggregation."""

    def test_master_file_writes_metadata(self, media_host, config):
        """The master file's metadata is stored and saved on the asset."""
        metadata = {"Width": 1920, "Camera": "Canon, EOS R5"}

        outcome = media.handle(_context(media_host, MASTER_FILE_ID, metadata), media_host, config)

        expected = 'Width, Camera\n1920, "Canon, EOS R5"'
        assert isinstance(outcome, AllowWithMutation)
        assert outcome.committed is True
        assert outcome.mutations == (SetProperty("Metadata", expected),)
        assert media_host.record(ASSET_ID).get_property_value("Metadata") == expected
        assert media_host.saved == [ASSET_ID]

    def test_rendition_ignored(self, media_host, config):
        """A file with no master parents does nothing."""
        outcome = media.handle(_context(media_host, RENDITION_ID, {"A": 1}), media_host, config)

        assert isinstance(outcome, Allow)
        assert media_host.saved == []

    def test_master_of_other_asset_ignored(self, media_host, config):
        """A file that is the master of a different asset does nothing."""
        media_host.add_entity(
            3003,
            definition="M.File",
            relations={"MasterFile": ChildToManyParentsRelation("MasterFile", [9999])},
        )

        outcome = media.handle(_context(media_host, 3003, {"A": 1}), media_host, config)

        assert isinstance(outcome, Allow)
        assert media_host.record(ASSET_ID).get_property_value("Metadata") is None

    def test_missing_relation_ignored(self, media_host, config):
        media_host.add_entity(3004, definition="M.File")

        outcome = media.handle(_context(media_host, 3004, {"A": 1}), media_host, config)

        assert isinstance(outcome, Allow)

    def test_metadata_property_from_config(self, media_host, config):
        config.metadata_property = "ExtractedMetadata"

        media.handle(_context(media_host, MASTER_FILE_ID, {"A": 1}), media_host, config)

        assert media_host.record(ASSET_ID).get_property_value("ExtractedMetadata") == "A\n1"

    def test_save_failure_propagates(self, media_host, config):
        """Persistence failures are not swallowed by the handler."""
        media_host.fail_saves = True

        with pytest.raises(PersistenceError):
            media.handle(_context(media_host, MASTER_FILE_ID, {"A": 1}), media_host, config)
