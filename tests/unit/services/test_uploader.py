"""
Tests unitaires pour AssetUploader.

Ces tests verifient:
- La progression en pourcentage entier, toujours terminee par 100
- L'URL durable retournee par le stockage
- L'abandon de la session et la remontee de l'erreur sans nouvel essai
- L'abandon aussi sur erreur du callback ou annulation
"""

import asyncio
from pathlib import Path

import pytest

from reelrack.core.errors import TransportError
from reelrack.core.value_objects.asset import LocalAsset
from reelrack.services.uploader import AssetUploader, progress_percent


class TestProgressPercent:
    @pytest.mark.parametrize(
        "sent,total,expected",
        [(0, 10, 0), (5, 10, 50), (1, 3, 33), (2, 3, 67), (10, 10, 100), (12, 10, 100), (0, 0, 100)],
    )
    def test_rounded_percentage(self, sent, total, expected) -> None:
        assert progress_percent(sent, total) == expected


class TestUpload:
    """Tests pour AssetUploader.upload."""

    @pytest.mark.asyncio
    async def test_reports_progress_and_returns_url(self, blob_storage) -> None:
        uploader = AssetUploader(blob_storage, chunk_size=4)
        progress = []

        url = await uploader.upload(
            LocalAsset(filename="dune.jpg", data=b"0123456789"),
            "posters/abc-dune.jpg",
            on_progress=progress.append,
        )

        assert url == "memory://posters/abc-dune.jpg"
        assert progress == [40, 80, 100]
        assert blob_storage.objects["posters/abc-dune.jpg"] == b"0123456789"

    @pytest.mark.asyncio
    async def test_empty_blob_reports_completion(self, blob_storage) -> None:
        uploader = AssetUploader(blob_storage, chunk_size=4)
        progress = []

        await uploader.upload(
            LocalAsset(filename="empty.jpg", data=b""), "posters/x-empty.jpg", progress.append
        )

        assert progress == [100]
        assert blob_storage.objects["posters/x-empty.jpg"] == b""

    @pytest.mark.asyncio
    async def test_uploads_from_file(self, blob_storage, tmp_path: Path) -> None:
        path = tmp_path / "trailer.mp4"
        path.write_bytes(b"x" * 10)
        uploader = AssetUploader(blob_storage, chunk_size=3)

        await uploader.upload(LocalAsset.from_path(path), "trailers/abc-trailer.mp4")

        assert blob_storage.objects["trailers/abc-trailer.mp4"] == b"x" * 10

    @pytest.mark.asyncio
    async def test_failure_aborts_session(self, blob_storage) -> None:
        """Un echec abandonne la session et remonte, sans nouvel essai."""
        blob_storage.fail_on.add("posters/")
        uploader = AssetUploader(blob_storage, chunk_size=4)
        progress = []

        with pytest.raises(TransportError, match="quota"):
            await uploader.upload(
                LocalAsset(filename="dune.jpg", data=b"0123456789"),
                "posters/abc-dune.jpg",
                progress.append,
            )

        assert blob_storage.aborted == ["posters/abc-dune.jpg"]
        assert blob_storage.opened == ["posters/abc-dune.jpg"]
        assert "posters/abc-dune.jpg" not in blob_storage.objects
        assert progress == []

    @pytest.mark.asyncio
    async def test_progress_callback_error_aborts_session(self, blob_storage) -> None:
        uploader = AssetUploader(blob_storage, chunk_size=4)

        def on_progress(pct: int) -> None:
            raise RuntimeError("affichage ferme")

        with pytest.raises(RuntimeError):
            await uploader.upload(
                LocalAsset(filename="dune.jpg", data=b"0123456789"), "posters/abc-dune.jpg", on_progress
            )

        assert blob_storage.aborted == ["posters/abc-dune.jpg"]
        assert blob_storage.objects == {}

    @pytest.mark.asyncio
    async def test_cancellation_aborts_session(self, blob_storage) -> None:
        uploader = AssetUploader(blob_storage, chunk_size=1)
        task = asyncio.create_task(
            uploader.upload(LocalAsset(filename="b.mp4", data=b"x" * 50), "trailers/b.mp4")
        )
        await asyncio.sleep(0.03)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert blob_storage.aborted == ["trailers/b.mp4"]
        assert blob_storage.objects == {}

    @pytest.mark.asyncio
    async def test_missing_file_fails_before_opening(self, blob_storage, tmp_path: Path) -> None:
        uploader = AssetUploader(blob_storage)

        with pytest.raises(TransportError, match="illisible"):
            await uploader.upload(LocalAsset.from_path(tmp_path / "missing.jpg"), "posters/x.jpg")

        assert blob_storage.opened == []

    @pytest.mark.asyncio
    async def test_concurrent_uploads_are_independent(self, blob_storage) -> None:
        uploader = AssetUploader(blob_storage, chunk_size=2)
        urls = await asyncio.gather(
            uploader.upload(LocalAsset(filename="a.jpg", data=b"aaaa"), "posters/a.jpg"),
            uploader.upload(LocalAsset(filename="b.mp4", data=b"bbbbbb"), "trailers/b.mp4"),
        )

        assert urls == ["memory://posters/a.jpg", "memory://trailers/b.mp4"]
        assert blob_storage.max_in_flight == 2

    def test_invalid_chunk_size(self, blob_storage) -> None:
        with pytest.raises(ValueError):
            AssetUploader(blob_storage, chunk_size=0)
