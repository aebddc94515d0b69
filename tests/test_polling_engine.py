import io

import pytest
from rich.console import Console

from podreel.errors import BatchMismatchError, PollTimeoutError, StatusQueryError
from podreel.polling import PollConfig, ProgressBoard, parse_progress, poll_batch
from podreel.polling import engine
from tests.fakes import ScriptedSource, in_progress, ready


class Recorder:
    def __init__(self):
        self.progress = []
        self.success = []
        self.errors = []

    def config(self, max_attempts=5, delay=0.0) -> PollConfig:
        return PollConfig(
            max_attempts=max_attempts,
            delay=delay,
            on_progress=lambda i, attempt, p: self.progress.append((i, attempt, p)),
            on_success=lambda i, path: self.success.append((i, path)),
            on_error=lambda i, error: self.errors.append((i, error)),
        )


@pytest.mark.asyncio
async def test_mismatched_batch_fails_before_any_query(tmp_path):
    source = ScriptedSource({"j1": [ready("j1")]})

    with pytest.raises(BatchMismatchError):
        await poll_batch(source, ["j1"], [], PollConfig(delay=0))

    assert source.calls == []


@pytest.mark.asyncio
async def test_ready_job_is_skipped_in_later_rounds(tmp_path):
    out1, out2 = str(tmp_path / "a.mp4"), str(tmp_path / "b.mp4")
    source = ScriptedSource(
        {
            "j1": [ready("j1", b"first")],
            "j2": [in_progress("j2", 40), ready("j2", b"second")],
        }
    )
    recorder = Recorder()

    outcome = await poll_batch(source, ["j1", "j2"], [out1, out2], recorder.config())

    assert outcome.all_completed
    assert source.calls == ["j1", "j2", "j2"]
    assert recorder.success == [(0, out1), (1, out2)]
    assert recorder.progress == [(1, 0, 40.0)]
    assert recorder.errors == []
    assert (tmp_path / "a.mp4").read_bytes() == b"first"
    assert (tmp_path / "b.mp4").read_bytes() == b"second"


@pytest.mark.asyncio
async def test_query_error_is_reported_and_retried(tmp_path):
    out = str(tmp_path / "a.mp4")
    source = ScriptedSource({"j1": [StatusQueryError("j1", 503), ready("j1")]})
    recorder = Recorder()

    outcome = await poll_batch(source, ["j1"], [out], recorder.config())

    assert outcome.all_completed
    assert len(recorder.errors) == 1
    assert isinstance(recorder.errors[0][1], StatusQueryError)
    assert recorder.success == [(0, out)]


@pytest.mark.asyncio
async def test_exhausted_jobs_get_one_timeout_each(tmp_path):
    outputs = [str(tmp_path / name) for name in ("a.mp4", "b.mp4", "c.mp4")]
    source = ScriptedSource(
        {"j1": [ready("j1")], "j2": [in_progress("j2", 10)], "j3": [in_progress("j3", 40)]}
    )
    recorder = Recorder()

    outcome = await poll_batch(source, ["j1", "j2", "j3"], outputs, recorder.config(max_attempts=3))

    assert outcome.succeeded == [0]
    assert outcome.failed == [1, 2]
    assert source.calls.count("j2") == 3
    assert source.calls.count("j3") == 3
    assert [index for index, _ in recorder.errors] == [1, 2]
    for _, error in recorder.errors:
        assert isinstance(error, PollTimeoutError)
        assert isinstance(error, TimeoutError)
    assert not (tmp_path / "b.mp4").exists()
    assert not (tmp_path / "c.mp4").exists()


@pytest.mark.asyncio
async def test_failed_artifact_write_is_retried_next_round(tmp_path, monkeypatch):
    real_write = engine.write_artifact
    writes = []

    async def flaky_write(report, output_path):
        writes.append(output_path)
        if len(writes) == 1:
            raise OSError("disk full")
        return await real_write(report, output_path)

    monkeypatch.setattr(engine, "write_artifact", flaky_write)
    out = str(tmp_path / "a.mp4")
    source = ScriptedSource({"j1": [ready("j1", b"video")]})
    recorder = Recorder()

    outcome = await poll_batch(source, ["j1"], [out], recorder.config(max_attempts=3))

    assert outcome.all_completed
    assert source.calls == ["j1", "j1"]
    assert len(recorder.errors) == 1
    index, error = recorder.errors[0]
    assert index == 0
    assert isinstance(error, OSError)
    assert recorder.success == [(0, out)]
    assert (tmp_path / "a.mp4").read_bytes() == b"video"


@pytest.mark.asyncio
async def test_no_sleep_once_batch_is_drained(tmp_path, monkeypatch):
    sleeps = []

    async def fake_sleep(delay):
        sleeps.append(delay)

    monkeypatch.setattr(engine.asyncio, "sleep", fake_sleep)
    source = ScriptedSource({"j1": [in_progress("j1"), ready("j1")]})

    await poll_batch(source, ["j1"], [str(tmp_path / "a.mp4")], PollConfig(max_attempts=5, delay=2.5))

    assert sleeps == [2.5]


@pytest.mark.asyncio
async def test_no_sleep_after_last_round(tmp_path, monkeypatch):
    sleeps = []

    async def fake_sleep(delay):
        sleeps.append(delay)

    monkeypatch.setattr(engine.asyncio, "sleep", fake_sleep)
    source = ScriptedSource({"j1": [in_progress("j1")]})

    await poll_batch(source, ["j1"], [str(tmp_path / "a.mp4")], PollConfig(max_attempts=3, delay=1.0))

    assert sleeps == [1.0, 1.0]


@pytest.mark.asyncio
async def test_board_prints_one_block_per_round(tmp_path):
    buffer = io.StringIO()
    board = ProgressBoard(Console(file=buffer, width=120), label="Video")
    source = ScriptedSource({"j1": [in_progress("j1", 50), ready("j1")]})

    await poll_batch(source, ["j1"], [str(tmp_path / "a.mp4")], PollConfig(delay=0), board)

    output = buffer.getvalue()
    assert "[Video 01] Progress:" in output
    assert "50.0%" in output


@pytest.mark.parametrize(
    "value, expected",
    [(42, 42.0), ("12.5", 12.5), (None, 0.0), ("abc", 0.0), (-3, 0.0), (250, 100.0), (float("nan"), 0.0)],
)
def test_parse_progress(value, expected):
    assert parse_progress(value) == expected
