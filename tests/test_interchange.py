"""Tests for JSON export/import and duplicate detection."""

import json
import re
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from offlinecards.errors import (
    CardImportError,
    DecodingFailedError,
    EncodingFailedError,
    FileReadFailedError,
    NoCardsToExportError,
)
from offlinecards.interchange import (
    export_cards,
    export_cards_to_file,
    find_duplicates,
    import_cards,
    import_cards_from_file,
    is_duplicate,
)
from offlinecards.models import Card

_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$")


def _document(**overrides) -> dict:
    card = {
        "cardNumber": "1234567890",
        "storeName": "Store A",
        "holderName": "Alice",
        "useQRCode": False,
        "colorHex": "#FF0000",
        "photoDataBase64": None,
        "createdAt": "2024-03-01T12:30:00Z",
    }
    card.update(overrides.pop("card", {}))
    doc = {"version": 1, "exportDate": "2024-03-02T08:00:00Z", "cards": [card]}
    doc.update(overrides)
    return doc


def _encode(doc) -> bytes:
    return json.dumps(doc).encode("utf-8")


class TestExport:
    def test_export_single_card(self):
        card = Card(card_number="1234567890", store_name="Test Store", holder_name="John Doe")
        data = export_cards([card])
        text = data.decode("utf-8")
        assert "1234567890" in text
        assert "Test Store" in text

    def test_export_multiple_cards(self):
        cards = [
            Card(card_number="1111111111", store_name="Store 1"),
            Card(card_number="2222222222", store_name="Store 2"),
            Card(card_number="3333333333", store_name="Store 3"),
        ]
        doc = json.loads(export_cards(cards))
        assert [c["cardNumber"] for c in doc["cards"]] == [
            "1111111111",
            "2222222222",
            "3333333333",
        ]

    def test_export_empty_raises(self):
        with pytest.raises(NoCardsToExportError):
            export_cards([])

    def test_export_container_has_version_and_date(self):
        doc = json.loads(export_cards([Card(card_number="6666666666", store_name="V")]))
        assert doc["version"] == 1
        assert _ISO_RE.match(doc["exportDate"])
        assert _ISO_RE.match(doc["cards"][0]["createdAt"])

    def test_export_keys_are_sorted(self):
        card = Card(card_number="1", store_name="S", photo_data=[b"x"])
        data = export_cards([card])
        doc = json.loads(data)
        assert list(doc) == sorted(doc)
        assert list(doc["cards"][0]) == sorted(doc["cards"][0])

    def test_export_is_pretty_and_canonical(self):
        card = Card(card_number="1", store_name="Café")
        data = export_cards([card])
        text = data.decode("utf-8")
        assert "\n  " in text
        assert "Café" in text
        assert text == json.dumps(
            json.loads(text), sort_keys=True, indent=2, ensure_ascii=False
        )

    def test_export_null_fields(self):
        doc = json.loads(export_cards([Card(card_number="1", store_name="S")]))
        assert doc["cards"][0]["holderName"] is None
        assert doc["cards"][0]["photoDataBase64"] is None

    def test_export_encoding_failure(self):
        with patch("offlinecards.interchange.json.dumps", side_effect=TypeError("bad")):
            with pytest.raises(EncodingFailedError):
                export_cards([Card(card_number="1", store_name="S")])

    def test_export_to_file(self, tmp_path):
        cards = [Card(card_number="1", store_name="S")]
        path = export_cards_to_file(cards, tmp_path / "exports")
        assert path.parent == tmp_path / "exports"
        assert re.match(r"^cards_export_\d+\.\d{6}\.json$", path.name)
        assert import_cards(path.read_bytes())[0].card_number == "1"

    def test_export_to_file_twice_keeps_both(self, tmp_path):
        """Exports made in quick succession never overwrite each other."""
        cards = [Card(card_number="1", store_name="S")]
        with patch("offlinecards.interchange.datetime") as mock_dt:
            mock_dt.now.return_value.timestamp.return_value = 1792201143.0
            first = export_cards_to_file(cards, tmp_path)
            second = export_cards_to_file(cards, tmp_path)

        assert first != second
        assert len(list(tmp_path.glob("cards_export_*.json"))) == 2
        assert import_cards(first.read_bytes()) == import_cards(second.read_bytes())


class TestImport:
    def test_round_trip(self):
        original = [
            Card(
                card_number="1234567890",
                store_name="Store A",
                holder_name="Alice",
                use_qr_code=False,
                color_hex="#FF0000",
            ),
            Card(
                card_number="0987654321",
                store_name="Store B",
                holder_name=None,
                use_qr_code=True,
                color_hex="#00FF00",
                photo_data=[b"image1", b"\x00\xff\x10binary"],
            ),
        ]
        imported = import_cards(export_cards(original))
        assert imported == original

    def test_round_trip_photos(self):
        card = Card(
            card_number="5555555555",
            store_name="Photo Store",
            photo_data=[b"image1", b"image2"],
        )
        imported = import_cards(export_cards([card]))
        assert imported[0].photo_data == [b"image1", b"image2"]

    def test_import_accepts_str(self):
        cards = import_cards(json.dumps(_document()))
        assert cards[0].store_name == "Store A"

    def test_import_invalid_json(self):
        with pytest.raises(DecodingFailedError):
            import_cards(b"invalid json")

    def test_import_deeply_nested_json(self):
        with pytest.raises(DecodingFailedError):
            import_cards(b"[" * 200000)

    def test_import_binary_garbage(self):
        with pytest.raises(DecodingFailedError):
            import_cards(b"\xff\xfe\x00\x81garbage")

    def test_optional_fields_may_be_missing(self):
        doc = _document()
        del doc["cards"][0]["holderName"]
        del doc["cards"][0]["photoDataBase64"]
        card = import_cards(_encode(doc))[0]
        assert card.holder_name is None
        assert card.photo_data is None

    def test_unknown_keys_are_ignored(self):
        doc = _document(card={"nickname": "x"}, generator="other app")
        assert len(import_cards(_encode(doc))) == 1

    def test_invalid_photo_entries_dropped(self):
        doc = _document(card={"photoDataBase64": ["aW1hZ2Ux", "%%%", "aW1hZ2Uy"]})
        card = import_cards(_encode(doc))[0]
        assert card.photo_data == [b"image1", b"image2"]

    def test_empty_card_list(self):
        assert import_cards(_encode(_document(cards=[]))) == []

    @pytest.mark.parametrize(
        "doc",
        [
            [],
            {"version": 1, "exportDate": "2024-03-02T08:00:00Z"},
            _document(version="1"),
            _document(version=True),
            _document(version=2),
            _document(exportDate="last tuesday"),
            _document(cards={"cardNumber": "1"}),
            _document(cards=["1234567890"]),
            _document(card={"useQRCode": "yes"}),
            _document(card={"cardNumber": 1234567890}),
            _document(card={"storeName": None}),
            _document(card={"holderName": 42}),
            _document(card={"photoDataBase64": "aW1hZ2Ux"}),
            _document(card={"photoDataBase64": [1, 2]}),
            _document(card={"createdAt": "2024-03-01"}),
            _document(card={"createdAt": 1709296200}),
        ],
    )
    def test_schema_mismatch(self, doc):
        with pytest.raises(DecodingFailedError):
            import_cards(_encode(doc))

    @pytest.mark.parametrize(
        "card",
        [
            {"cardNumber": "   "},
            {"storeName": ""},
            {"colorHex": "blue"},
        ],
    )
    def test_invalid_card_values(self, card):
        with pytest.raises(DecodingFailedError):
            import_cards(_encode(_document(card=card)))

    def test_card_values_are_trimmed(self):
        doc = _document(
            card={"cardNumber": " 1234567890 ", "holderName": "  ", "colorHex": "ff0000"}
        )
        card = import_cards(_encode(doc))[0]
        assert card.card_number == "1234567890"
        assert card.holder_name is None
        assert card.color_hex == "#FF0000"

    def test_created_at_is_preserved(self):
        card = import_cards(_encode(_document()))[0]
        assert card.created_at == datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)

    def test_missing_card_key(self):
        doc = _document()
        del doc["cards"][0]["colorHex"]
        with pytest.raises(DecodingFailedError, match="colorHex"):
            import_cards(_encode(doc))

    def test_import_from_file(self, tmp_path):
        path = tmp_path / "cards.json"
        path.write_bytes(export_cards([Card(card_number="1", store_name="S")]))
        assert import_cards_from_file(path)[0].card_number == "1"

    def test_import_from_missing_file(self, tmp_path):
        with pytest.raises(FileReadFailedError):
            import_cards_from_file(tmp_path / "missing.json")

    def test_import_from_directory(self, tmp_path):
        with pytest.raises(FileReadFailedError):
            import_cards_from_file(tmp_path)

    def test_import_from_file_with_bad_content(self, tmp_path):
        path = tmp_path / "cards.json"
        path.write_text("not json")
        with pytest.raises(DecodingFailedError):
            import_cards_from_file(path)

    def test_error_hierarchy(self):
        assert issubclass(DecodingFailedError, CardImportError)
        assert issubclass(DecodingFailedError, ValueError)
        assert issubclass(FileReadFailedError, OSError)


class TestDuplicates:
    def test_find_duplicates(self):
        existing = [
            Card(card_number="1111111111", store_name="Store 1"),
            Card(card_number="2222222222", store_name="Store 2"),
            Card(card_number="3333333333", store_name="Store 3"),
        ]
        imported = [
            Card(card_number="2222222222", store_name="StoreX"),
            Card(card_number="4444444444", store_name="Store 4"),
            Card(card_number="3333333333", store_name="StoreY"),
        ]
        duplicates = find_duplicates(imported, existing)
        assert duplicates == ["2222222222", "3333333333"]
        assert "4444444444" not in duplicates

    def test_find_duplicates_follows_imported_order(self):
        existing = [Card(card_number="1", store_name="A"), Card(card_number="2", store_name="B")]
        imported = [Card(card_number="2", store_name="B"), Card(card_number="1", store_name="A")]
        assert find_duplicates(imported, existing) == ["2", "1"]

    def test_find_duplicates_none(self):
        assert find_duplicates([Card(card_number="1", store_name="A")], []) == []

    def test_is_duplicate(self):
        existing = [
            Card(card_number="1111111111", store_name="Store 1"),
            Card(card_number="2222222222", store_name="Store 2"),
        ]
        duplicate = Card(card_number="1111111111", store_name="Different Name", use_qr_code=True)
        unique = Card(card_number="9999999999", store_name="Unique Store")
        assert is_duplicate(duplicate, existing) is True
        assert is_duplicate(unique, existing) is False
