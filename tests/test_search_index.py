"""
Tests for the in-memory search index
"""
from order_search.search.index import SearchIndex, build_searchable_text


class TestSearchIndex:
    """Test cases for SearchIndex"""

    def setup_method(self):
        self.index = SearchIndex()

    def test_upsert_recomputes_searchable_text(self, make_document):
        stored = self.index.upsert(make_document(searchable_text="stale"))
        assert stored.searchable_text != "stale"
        assert "ord-2024-001" in stored.searchable_text
        assert "austin" in stored.searchable_text
        assert stored.searchable_text == stored.searchable_text.lower()

    def test_upsert_replaces_whole_document(self, make_document):
        self.index.upsert(make_document(id="1", notes="first"))
        self.index.upsert(make_document(id="1", notes="second"))
        assert len(self.index) == 1
        assert self.index.get("1").notes == "second"
        assert "first" not in self.index.get("1").searchable_text

    def test_upsert_is_idempotent(self, make_document):
        document = make_document()
        self.index.upsert(document)
        once = self.index.all()
        self.index.upsert(document)
        assert self.index.all() == once

    def test_delete(self, make_document):
        self.index.upsert(make_document(id="1"))
        assert self.index.delete("1") is True
        assert "1" not in self.index

    def test_delete_missing_is_noop(self):
        assert self.index.delete("missing") is False
        assert len(self.index) == 0

    def test_snapshot_replace_round_trip(self, make_document):
        self.index.upsert(make_document(id="old"))
        documents = [make_document(id=str(i), order_number=f"ORD-{i}") for i in range(3)]

        assert self.index.snapshot_replace(documents) == 3

        stored = {d.id: d for d in self.index.all()}
        assert set(stored) == {"0", "1", "2"}
        for document in documents:
            expected = document.model_copy(update={"searchable_text": build_searchable_text(document)})
            assert stored[document.id] == expected

    def test_all_is_a_point_in_time_copy(self, make_document):
        self.index.upsert(make_document(id="1"))
        snapshot = self.index.all()
        self.index.upsert(make_document(id="2"))
        assert [d.id for d in snapshot] == ["1"]
        assert self.index.ids() == ["1", "2"]

    def test_compact_keeps_remaining_documents(self, make_document):
        self.index.upsert(make_document(id="1"))
        self.index.upsert(make_document(id="2"))
        self.index.delete("1")
        assert self.index.compact() == 1
        assert self.index.ids() == ["2"]


class TestSearchableText:
    def test_includes_both_addresses(self, make_document):
        document = make_document(
            billing_address={"street": "9 Elm Rd", "city": "Boston", "postalCode": "02101"},
        )
        text = build_searchable_text(document)
        assert "austin" in text
        assert "9 elm rd boston 02101" in text
        assert "alice@example.com" in text
        assert "pending" in text
