"""Tests for calspine.core.hashing module."""

from calspine.core.hashing import canonical_json, compute_hash, fingerprint_records


class TestComputeHash:
    def test_deterministic(self):
        assert compute_hash("2024-01-01", 445) == compute_hash("2024-01-01", 445)

    def test_length(self):
        assert len(compute_hash("x")) == 32
        assert len(compute_hash("x", length=12)) == 12

    def test_different_values_differ(self):
        assert compute_hash("2024-01-01") != compute_hash("2024-01-02")


class TestFingerprint:
    def test_key_order_does_not_matter(self):
        a = [{"date_key": 20240101, "is_holiday": True}]
        b = [{"is_holiday": True, "date_key": 20240101}]
        assert fingerprint_records(a) == fingerprint_records(b)

    def test_row_order_matters(self):
        rows = [{"date_key": 20240101}, {"date_key": 20240102}]
        assert fingerprint_records(rows) != fingerprint_records(list(reversed(rows)))

    def test_full_length_digest(self):
        assert len(fingerprint_records([])) == 64

    def test_canonical_json_sorts_keys(self):
        assert canonical_json({"b": 1, "a": 2}) == '{"a":2,"b":1}'
