"""Tests for the image list provider."""

from __future__ import annotations

import os
from unittest.mock import MagicMock

import pytest
import requests

from photoframe.services.image_source import (
    FALLBACK_IMAGES,
    ImageSource,
    is_image_file,
    list_photo_directory,
    sample_listing,
)


def _touch(path, mtime: float | None = None) -> None:
    path.write_bytes(b"data")
    if mtime is not None:
        os.utime(path, (mtime, mtime))


class TestListPhotoDirectory:
    def test_lists_images_sorted_with_metadata(self, tmp_path):
        _touch(tmp_path / "b.png", 1_700_000_000)
        _touch(tmp_path / "A.JPG")
        _touch(tmp_path / "notes.txt")
        (tmp_path / "sub.jpg").mkdir()

        listing = list_photo_directory(tmp_path)

        assert [item["name"] for item in listing] == ["A.JPG", "b.png"]
        assert listing[1]["url"] == "/photos/b.png"
        assert listing[1]["lastModified"] == 1_700_000_000_000

    def test_creates_missing_directory(self, tmp_path):
        target = tmp_path / "new" / "photos"
        assert list_photo_directory(target) == []
        assert target.is_dir()

    def test_url_is_quoted(self, tmp_path):
        _touch(tmp_path / "my photo.jpg")
        assert list_photo_directory(tmp_path)[0]["url"] == "/photos/my%20photo.jpg"

    def test_is_image_file(self):
        assert is_image_file("x.webp")
        assert is_image_file("X.JPEG")
        assert not is_image_file("x.heic")

    def test_sample_listing(self):
        samples = sample_listing()
        assert [s["url"] for s in samples] == [r.url for r in FALLBACK_IMAGES]
        assert all(isinstance(s["lastModified"], int) for s in samples)


class TestImageSourceDirectory:
    def test_fetch_returns_records(self, tmp_path):
        _touch(tmp_path / "one.jpg")
        records = ImageSource(photos_dir=tmp_path).fetch()
        assert len(records) == 1
        assert records[0].url == "/photos/one.jpg"
        assert records[0].last_modified is not None

    def test_empty_directory_is_empty_list(self, tmp_path):
        assert ImageSource(photos_dir=tmp_path).fetch() == []

    def test_unreadable_directory_falls_back(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a dir")
        assert ImageSource(photos_dir=blocker).fetch() == list(FALLBACK_IMAGES)


class TestImageSourceRemote:
    def _session(self, payload=None, exc=None) -> MagicMock:
        session = MagicMock()
        if exc is not None:
            session.get.side_effect = exc
        else:
            session.get.return_value = MagicMock(
                json=MagicMock(return_value=payload), raise_for_status=MagicMock()
            )
        return session

    def test_relative_urls_prefixed(self):
        session = self._session([{"url": "/photos/a.jpg", "name": "a.jpg", "lastModified": 1}])
        records = ImageSource(base_url="http://frame.local:3001/", session=session).fetch()
        assert records[0].url == "http://frame.local:3001/photos/a.jpg"
        args, _ = session.get.call_args
        assert args[0] == "http://frame.local:3001/api/images"

    def test_absolute_urls_kept(self):
        session = self._session([{"url": "https://cdn/x.jpg"}])
        records = ImageSource(base_url="http://frame", session=session).fetch()
        assert records[0].url == "https://cdn/x.jpg"

    def test_network_error_falls_back(self, monkeypatch):
        monkeypatch.setattr("photoframe.services.http_helpers.time", MagicMock())
        session = self._session(exc=requests.exceptions.ConnectionError("Connection refused"))
        assert ImageSource(base_url="http://frame", session=session).fetch() == list(FALLBACK_IMAGES)

    def test_non_list_payload_falls_back(self):
        session = self._session({"error": "nope"})
        assert ImageSource(base_url="http://frame", session=session).fetch() == list(FALLBACK_IMAGES)

    def test_invalid_item_falls_back(self):
        session = self._session([{"name": "no url"}])
        assert ImageSource(base_url="http://frame", session=session).fetch() == list(FALLBACK_IMAGES)

    def test_requires_dir_or_url(self):
        with pytest.raises(ValueError):
            ImageSource()
