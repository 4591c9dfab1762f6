import math
import subprocess

import pytest

from case_transcriber.exceptions import SegmentationError
from case_transcriber.media import segmenter as segmenter_module
from case_transcriber.media.ffmpeg import probe_duration
from case_transcriber.media.segmenter import Segmenter
from conftest import requires_ffmpeg, run_ffmpeg


def test_small_file_is_returned_untouched(tmp_path, monkeypatch):
    def no_subprocess(*args, **kwargs):
        raise AssertionError("ffmpeg must not run for files under the threshold")

    monkeypatch.setattr(subprocess, "run", no_subprocess)
    monkeypatch.setattr(subprocess, "Popen", no_subprocess)

    audio = tmp_path / "audio.mp3"
    payload = bytes(range(256)) * 40
    audio.write_bytes(payload)

    segments = Segmenter(max_bytes=len(payload), segment_seconds=600).split(audio, tmp_path / "segments")

    assert len(segments) == 1
    assert segments[0].index == 0
    assert segments[0].path == audio
    assert segments[0].owned is False
    assert segments[0].path.read_bytes() == payload
    assert not (tmp_path / "segments").exists()


def test_collect_orders_by_numeric_index(tmp_path, monkeypatch):
    monkeypatch.setattr(segmenter_module, "probe_duration", lambda path: 10.0)
    audio = tmp_path / "call.audio.mp3"
    for index in (10, 2, 0, 1):
        (tmp_path / f"call.audio_{index:03d}.mp3").write_bytes(b"x")
    (tmp_path / "other_000.mp3").write_bytes(b"x")

    segments = Segmenter().collect(audio, tmp_path)

    assert [s.index for s in segments] == [0, 1, 2, 10]
    assert [s.offset for s in segments] == [0.0, 10.0, 20.0, 30.0]
    assert all(s.owned for s in segments)


def test_unreadable_duration_falls_back_to_nominal_offsets(tmp_path, monkeypatch):
    durations = {"call.audio_000.mp3": 9.8, "call.audio_001.mp3": None, "call.audio_002.mp3": 10.0}
    monkeypatch.setattr(segmenter_module, "probe_duration", lambda path: durations[path.name])
    audio = tmp_path / "call.audio.mp3"
    for name in durations:
        (tmp_path / name).write_bytes(b"x")

    segments = Segmenter(segment_seconds=10).collect(audio, tmp_path)

    assert [s.offset for s in segments] == [0.0, 9.8, 20.0]
    assert segments[1].duration is None


def test_split_failure_raises_segmentation_error(tmp_path, monkeypatch):
    def failing_run(cmd, **kwargs):
        raise subprocess.CalledProcessError(1, cmd, stderr="Invalid data found when processing input")

    monkeypatch.setattr(segmenter_module.subprocess, "run", failing_run)
    audio = tmp_path / "audio.mp3"
    audio.write_bytes(b"\x00" * 64)

    with pytest.raises(SegmentationError) as excinfo:
        Segmenter(max_bytes=10).split(audio, tmp_path / "segments")

    assert "Invalid data" in excinfo.value.details


def test_split_producing_nothing_raises(tmp_path, monkeypatch):
    monkeypatch.setattr(segmenter_module.subprocess, "run", lambda cmd, **kwargs: None)
    audio = tmp_path / "audio.mp3"
    audio.write_bytes(b"\x00" * 64)

    with pytest.raises(SegmentationError):
        Segmenter(max_bytes=10).split(audio, tmp_path / "segments")


@requires_ffmpeg
def test_long_audio_is_split_into_bounded_segments(tmp_path):
    total_seconds = 45 * 60
    segment_seconds = 600
    audio = tmp_path / "long.mp3"
    run_ffmpeg(
        "-f", "lavfi", "-i", f"anullsrc=r=16000:cl=mono",
        "-t", str(total_seconds), "-b:a", "16k", str(audio),
    )
    original = probe_duration(audio)

    segmenter = Segmenter(max_bytes=1024 * 1024, segment_seconds=segment_seconds)
    segments = segmenter.split(audio, tmp_path / "segments")

    assert len(segments) == math.ceil(total_seconds / segment_seconds)
    assert [s.index for s in segments] == list(range(len(segments)))
    for segment in segments[:-1]:
        assert segment.duration == pytest.approx(segment_seconds, abs=1.0)
    assert segments[-1].duration < segment_seconds
    assert sum(s.duration for s in segments) == pytest.approx(original, abs=1.0)


@requires_ffmpeg
def test_undecodable_audio_fails_segmentation(tmp_path):
    audio = tmp_path / "garbage.mp3"
    audio.write_bytes(b"not really audio" * 1000)

    with pytest.raises(SegmentationError):
        Segmenter(max_bytes=100, segment_seconds=60).split(audio, tmp_path / "segments")
