"""Tests for the store object model."""

import pytest

from notestore.storage.base import ObjectAndMeta, ObjectHeaders, StoreProvider


class TestObjectHeaders:
    def test_to_rows_uses_persisted_names(self) -> None:
        headers = ObjectHeaders(cache_control="no-cache", content_encoding="gzip")
        assert headers.to_rows() == {"cacheControl": "no-cache", "contentEncoding": "gzip"}

    def test_to_rows_empty(self) -> None:
        assert ObjectHeaders().to_rows() == {}

    def test_from_rows_ignores_unknown(self) -> None:
        headers = ObjectHeaders.from_rows(
            {"contentDisposition": "attachment", "x-other": "ignored"}
        )
        assert headers == ObjectHeaders(content_disposition="attachment")


class TestObjectAndMeta:
    def test_empty_result_is_falsy(self) -> None:
        assert not ObjectAndMeta()

    def test_found_result_is_truthy(self) -> None:
        assert ObjectAndMeta(content="", buffer=b"")


def test_store_provider_is_abstract() -> None:
    with pytest.raises(TypeError):
        StoreProvider()  # type: ignore[abstract]
