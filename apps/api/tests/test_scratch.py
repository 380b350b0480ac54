import os
import time
from unittest.mock import patch

import pytest

from multimodal.scratch import ScratchFiles, discard_path, new_scratch_path, sweep_stale_scratch_files


def test_new_scratch_paths_are_unique(scratch_dir):
    paths = {new_scratch_path(".wav") for _ in range(50)}
    assert len(paths) == 50
    assert all(path.parent == scratch_dir for path in paths)


@pytest.mark.asyncio
async def test_scratch_files_removed_when_block_raises(scratch_dir):
    media = scratch_dir / "a.mp4"
    audio = scratch_dir / "a.wav"
    media.write_bytes(b"v")
    audio.write_bytes(b"a")

    with pytest.raises(RuntimeError):
        async with ScratchFiles() as scratch:
            scratch.track(media)
            scratch.track(audio)
            raise RuntimeError("transcription failed")

    assert not media.exists()
    assert not audio.exists()


@pytest.mark.asyncio
async def test_scratch_files_tolerate_already_missing_paths(scratch_dir):
    async with ScratchFiles() as scratch:
        scratch.track(scratch_dir / "never-created.wav")
    assert scratch.paths == []


@pytest.mark.asyncio
async def test_discard_path_logs_instead_of_raising(scratch_dir):
    with patch("multimodal.scratch._unlink", side_effect=PermissionError("denied")):
        assert await discard_path(scratch_dir / "x.wav") is False
    assert await discard_path(None) is True


def test_sweep_removes_only_stale_files(scratch_dir):
    stale = scratch_dir / "stale.mp4"
    fresh = scratch_dir / "fresh.wav"
    stale.write_bytes(b"old")
    fresh.write_bytes(b"new")
    two_days_ago = time.time() - 48 * 3600
    os.utime(stale, (two_days_ago, two_days_ago))

    removed = sweep_stale_scratch_files(retention_hours=6)

    assert removed == 1
    assert not stale.exists()
    assert fresh.exists()


def test_sweep_without_directory_is_a_no_op(tmp_path):
    assert sweep_stale_scratch_files(tmp_path / "missing") == 0
