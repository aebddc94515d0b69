import pytest

from podreel.errors import ConcatenationError
from podreel.pipeline import concat, concat_videos


class FakeProcess:
    def __init__(self, returncode, stderr=b""):
        self.returncode = returncode
        self._stderr = stderr

    async def communicate(self):
        return b"", self._stderr


@pytest.fixture
def spawned(monkeypatch):
    calls = []
    state = {"process": FakeProcess(0)}

    async def fake_exec(program, *args, **kwargs):
        list_path = args[args.index("-i") + 1]
        with open(list_path, encoding="utf-8") as f:
            calls.append({"program": program, "args": list(args), "list": f.read()})
        return state["process"]

    monkeypatch.setattr(concat.asyncio, "create_subprocess_exec", fake_exec)
    return calls, state


@pytest.mark.asyncio
async def test_concat_runs_ffmpeg_with_list_file(tmp_path, spawned):
    calls, _ = spawned
    inputs = [str(tmp_path / "a.mp4"), str(tmp_path / "b.mp4")]
    output = str(tmp_path / "final" / "out.mp4")

    assert await concat_videos(inputs, output) == output

    assert calls[0]["program"] == "ffmpeg"
    assert calls[0]["args"][:4] == ["-f", "concat", "-safe", "0"]
    assert calls[0]["args"][-3:] == ["-c", "copy", output]
    assert calls[0]["list"] == f"file '{inputs[0]}'\nfile '{inputs[1]}'"
    assert not (tmp_path / "final" / "concat_list.txt").exists()


@pytest.mark.asyncio
async def test_concat_failure_raises(tmp_path, spawned):
    _, state = spawned
    state["process"] = FakeProcess(1, b"Invalid data found")

    with pytest.raises(ConcatenationError) as excinfo:
        await concat_videos([str(tmp_path / "a.mp4")], str(tmp_path / "out.mp4"))

    assert excinfo.value.returncode == 1
    assert "Invalid data" in excinfo.value.stderr
    assert not (tmp_path / "concat_list.txt").exists()


@pytest.mark.asyncio
async def test_concat_list_escapes_single_quotes(tmp_path, spawned):
    calls, _ = spawned
    clip = str(tmp_path / "it's.mp4")

    await concat_videos([clip], str(tmp_path / "out.mp4"))

    expected = clip.replace("'", "'\\''")
    assert calls[0]["list"] == f"file '{expected}'"
    assert calls[0]["list"].endswith("it'\\''s.mp4'")


@pytest.mark.asyncio
async def test_concat_requires_inputs(tmp_path):
    with pytest.raises(ValueError):
        await concat_videos([], str(tmp_path / "out.mp4"))
