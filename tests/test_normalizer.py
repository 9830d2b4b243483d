"""Tests for WAV probing, the ffmpeg transcoder and the audio normalizer.

WHY: Audio normalization runs an external program on untrusted input.
These tests check that canonical audio passes through untouched, that
every failure mode of the subprocess becomes ConversionFailedError, and
that the temporary directory never outlives a call.

HOW: Shell scripts written into tmp_path stand in for ffmpeg (sleep for
a timeout, exit 1 for a failure, copy a prepared WAV for success). Async
code runs via asyncio.run inside plain test functions.
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

import pytest

from pronunciation_assessor.core.audio import (
    AudioProbeError,
    check_recognizer_requirements,
    is_canonical,
    probe_wav,
)
from pronunciation_assessor.core.errors import ConversionFailedError
from pronunciation_assessor.core.normalizer import AudioNormalizer, FfmpegTranscoder

from helpers import FakeTranscoder, make_wav

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses /bin/sh scripts")


def _write_script(path: Path, body: str) -> Path:
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(0o755)
    return path


# ---------------------------------------------------------------------------
# probe_wav / requirements
# ---------------------------------------------------------------------------


class TestProbe:

    def test_probe_canonical(self, canonical_wav):
        info = probe_wav(canonical_wav)
        assert info.sample_rate == 16000
        assert info.bit_depth == 16
        assert info.channels == 1
        assert info.duration_s == pytest.approx(1.0)
        assert is_canonical(info)

    def test_probe_cd_quality(self, cd_quality_wav):
        info = probe_wav(cd_quality_wav)
        assert info.sample_rate == 44100
        assert info.channels == 2
        assert not is_canonical(info)

    def test_probe_garbage_raises(self):
        with pytest.raises(AudioProbeError):
            probe_wav(b"RIFF\x00\x00\x00\x00WAVEnot really a wav file" + b"\x00" * 100)

    def test_requirements_met(self, canonical_wav):
        info, violations = check_recognizer_requirements(canonical_wav)
        assert violations == []
        assert info is not None

    def test_duration_bounds(self):
        _, short = check_recognizer_requirements(make_wav(duration_s=0.2))
        assert short == ["audio too short (minimum 0.5s, got 0.20s)"]

        _, long_ = check_recognizer_requirements(make_wav(duration_s=2.0), max_duration_s=1.5)
        assert long_ == ["audio too long (maximum 1.5s, got 2.00s)"]

    def test_wrong_rate_and_depth_both_reported(self):
        data = make_wav(sample_rate=8000, subtype="PCM_24")
        _, violations = check_recognizer_requirements(data)
        assert "sample rate must be 16000 Hz (got 8000 Hz)" in violations
        assert "bit depth must be 16-bit (got 24-bit)" in violations

    def test_unreadable_output_is_a_violation(self):
        info, violations = check_recognizer_requirements(b"definitely not audio")
        assert info is None
        assert violations[0] == "converted audio is not a WAV container"
        assert len(violations) == 2


# ---------------------------------------------------------------------------
# AudioNormalizer with a fake transcoder
# ---------------------------------------------------------------------------


class TestAudioNormalizer:

    def test_canonical_input_passes_through_unchanged(self, canonical_wav):
        transcoder = FakeTranscoder()
        asset = asyncio.run(AudioNormalizer(transcoder).normalize(canonical_wav))

        assert asset.data is canonical_wav
        assert asset.byte_length == len(canonical_wav)
        assert asset.sample_rate == 16000
        assert asset.bit_depth == 16
        assert asset.mime_type == "audio/wav"
        assert asset.source_mime_type == "audio/wav"
        assert transcoder.calls == []

    def test_sniffed_type_decides_passthrough(self, canonical_wav):
        transcoder = FakeTranscoder(output=canonical_wav)
        asset = asyncio.run(
            AudioNormalizer(transcoder).normalize(canonical_wav, source_mime_type="audio/ogg")
        )
        assert transcoder.calls == [canonical_wav]
        assert asset.source_mime_type == "audio/ogg"

    def test_converted_asset_keeps_source_type(self, canonical_wav):
        ogg = b"OggS" + b"\x00" * 4096
        transcoder = FakeTranscoder(output=canonical_wav)
        asset = asyncio.run(AudioNormalizer(transcoder).normalize(ogg))

        assert transcoder.calls == [ogg]
        assert asset.mime_type == "audio/wav"
        assert asset.source_mime_type == "audio/ogg"

    def test_normalization_is_idempotent(self, cd_quality_wav, canonical_wav):
        normalizer = AudioNormalizer(FakeTranscoder(output=canonical_wav))
        first = asyncio.run(normalizer.normalize(cd_quality_wav))
        second = asyncio.run(normalizer.normalize(first.data))
        assert second.data == first.data

    def test_non_canonical_wav_is_converted(self, cd_quality_wav, canonical_wav):
        transcoder = FakeTranscoder(output=canonical_wav)
        asset = asyncio.run(AudioNormalizer(transcoder).normalize(cd_quality_wav))
        assert transcoder.calls == [cd_quality_wav]
        assert asset.data == canonical_wav

    def test_nonconforming_conversion_output_fails(self, cd_quality_wav):
        transcoder = FakeTranscoder(output=make_wav(sample_rate=22050))
        with pytest.raises(ConversionFailedError, match="sample rate must be 16000 Hz"):
            asyncio.run(AudioNormalizer(transcoder).normalize(cd_quality_wav))

    def test_short_canonical_audio_fails_after_passthrough(self):
        transcoder = FakeTranscoder()
        with pytest.raises(ConversionFailedError, match="audio too short"):
            asyncio.run(AudioNormalizer(transcoder).normalize(make_wav(duration_s=0.3)))
        assert transcoder.calls == []

    def test_transcoder_error_propagates(self, cd_quality_wav):
        transcoder = FakeTranscoder(error=ConversionFailedError("boom"))
        with pytest.raises(ConversionFailedError, match="boom"):
            asyncio.run(AudioNormalizer(transcoder).normalize(cd_quality_wav))


# ---------------------------------------------------------------------------
# FfmpegTranscoder with stand-in scripts
# ---------------------------------------------------------------------------


class TestFfmpegTranscoder:

    def test_build_command(self, tmp_path):
        cmd = FfmpegTranscoder("ffmpeg").build_command(tmp_path / "in", tmp_path / "out.wav")
        assert cmd[0] == "ffmpeg"
        assert cmd[cmd.index("-acodec") + 1] == "pcm_s16le"
        assert cmd[cmd.index("-ar") + 1] == "16000"
        assert cmd[cmd.index("-ac") + 1] == "1"
        assert cmd[cmd.index("-f") + 1] == "wav"
        assert cmd[-1] == str(tmp_path / "out.wav")

    @posix_only
    def test_success_returns_output_and_cleans_up(self, tmp_path, canonical_wav):
        prepared = tmp_path / "prepared.wav"
        prepared.write_bytes(canonical_wav)
        script = _write_script(
            tmp_path / "fake-ffmpeg",
            'for last; do :; done\ncp "{}" "$last"'.format(prepared),
        )
        work_root = tmp_path / "work"
        work_root.mkdir()

        transcoder = FfmpegTranscoder(str(script), timeout_s=10, temp_root=work_root)
        output = asyncio.run(transcoder.transcode(b"some ogg bytes"))

        assert output == canonical_wav
        assert list(work_root.iterdir()) == []

    @posix_only
    def test_timeout_kills_and_cleans_up(self, tmp_path):
        script = _write_script(tmp_path / "slow-ffmpeg", "exec sleep 30")
        work_root = tmp_path / "work"
        work_root.mkdir()

        transcoder = FfmpegTranscoder(str(script), timeout_s=0.3, temp_root=work_root)
        with pytest.raises(ConversionFailedError, match="timed out after 0.3s"):
            asyncio.run(transcoder.transcode(b"x" * 2048))

        assert list(work_root.iterdir()) == []

    @posix_only
    def test_cancellation_kills_and_cleans_up(self, tmp_path):
        pid_file = tmp_path / "ffmpeg.pid"
        script = _write_script(
            tmp_path / "hung-ffmpeg",
            'echo $$ > "{}"\nexec sleep 30'.format(pid_file),
        )
        work_root = tmp_path / "work"
        work_root.mkdir()
        transcoder = FfmpegTranscoder(str(script), timeout_s=30, temp_root=work_root)

        async def cancel_mid_run():
            task = asyncio.ensure_future(transcoder.transcode(b"x" * 2048))
            for _ in range(100):
                if pid_file.exists() and pid_file.read_text().strip():
                    break
                await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return int(pid_file.read_text())

        pid = asyncio.run(cancel_mid_run())

        assert list(work_root.iterdir()) == []
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)

    @posix_only
    def test_non_zero_exit(self, tmp_path):
        script = _write_script(
            tmp_path / "bad-ffmpeg",
            'echo "Invalid data found when processing input" >&2\nexit 1',
        )
        work_root = tmp_path / "work"
        work_root.mkdir()

        transcoder = FfmpegTranscoder(str(script), timeout_s=10, temp_root=work_root)
        with pytest.raises(ConversionFailedError) as exc_info:
            asyncio.run(transcoder.transcode(b"x" * 2048))

        assert "exit code 1" in exc_info.value.reason
        assert "Invalid data found" in exc_info.value.reason
        assert list(work_root.iterdir()) == []

    @posix_only
    def test_success_without_output_file(self, tmp_path):
        script = _write_script(tmp_path / "lazy-ffmpeg", "exit 0")
        transcoder = FfmpegTranscoder(str(script), timeout_s=10)
        with pytest.raises(ConversionFailedError, match="no output file"):
            asyncio.run(transcoder.transcode(b"x" * 2048))

    def test_missing_binary(self, tmp_path):
        transcoder = FfmpegTranscoder(str(tmp_path / "no-such-ffmpeg"), timeout_s=10)
        with pytest.raises(ConversionFailedError, match="cannot start transcoder"):
            asyncio.run(transcoder.transcode(b"x" * 2048))
