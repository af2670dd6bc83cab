import os
import sys
import threading
import types

# Ensure the project root is on sys.path so the server modules can be imported
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT_DIR)

import pytest

from job import Segment, Transcript
from job_store import JobStore

HELLO_WORLD = Transcript(
    text="hello world",
    segments=(Segment(start=0.0, end=5.0, text="hello"), Segment(start=5.0, end=12.3, text="world")),
    language="en",
    duration=12.3,
)


class FakeDownloader:
    """Writes a sparse file of ``size`` bytes instead of downloading."""

    def __init__(self, size=1024, error=None, on_fetch=None):
        self.size = size
        self.error = error
        self.on_fetch = on_fetch
        self.calls = []

    def fetch(self, url, timeout, output_dir):
        self.calls.append((url, timeout, output_dir))
        if self.on_fetch:
            self.on_fetch(url)
        if self.error:
            raise self.error
        path = os.path.join(output_dir, "audio.mp3")
        with open(path, "wb") as f:
            f.truncate(self.size)
        return path


class FakeTranscriber:
    def __init__(self, result=HELLO_WORLD, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def transcribe(self, audio_file):
        self.calls.append(audio_file)
        if self.error:
            raise self.error
        return self.result


class DummyThread:
    """Runs the target inline when started."""

    def __init__(self, target=None, args=(), **kwargs):
        self.target = target
        self.args = args

    def start(self):
        if self.target:
            self.target(*self.args)

    def join(self, timeout=None):
        pass


class DummyWhisper:
    instances = 0

    def __init__(self, *args, **kwargs):
        DummyWhisper.instances += 1
        self.kwargs = kwargs

    def transcribe(self, audio_file):
        segments = [
            types.SimpleNamespace(start=0.0, end=5.0, text=" hello"),
            types.SimpleNamespace(start=5.0, end=12.3, text=" world"),
        ]
        info = types.SimpleNamespace(language="en", duration=12.3)
        return iter(segments), info


@pytest.fixture()
def store():
    return JobStore()


@pytest.fixture()
def inline_threads(monkeypatch):
    monkeypatch.setattr(threading, "Thread", DummyThread)


@pytest.fixture()
def deferred_threads(monkeypatch):
    """Collects started worker threads so a test can run them when it wants."""
    started = []

    class DeferredThread(DummyThread):
        def start(self):
            started.append(self)

        def run(self):
            self.target(*self.args)

    monkeypatch.setattr(threading, "Thread", DeferredThread)
    return started


@pytest.fixture()
def whisper_stubs(monkeypatch):
    dummy_module = types.ModuleType("faster_whisper")
    dummy_module.WhisperModel = DummyWhisper
    monkeypatch.setitem(sys.modules, "faster_whisper", dummy_module)

    dummy_torch = types.ModuleType("torch")
    dummy_torch.cuda = types.SimpleNamespace(is_available=lambda: False)
    monkeypatch.setitem(sys.modules, "torch", dummy_torch)

    DummyWhisper.instances = 0
    return dummy_module
