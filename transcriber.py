"""Speech-to-text with faster-whisper."""

import logging
import threading
from typing import Optional

import torch
from faster_whisper import WhisperModel

import config
from errors import TranscriptionError
from job import Segment, Transcript

LOGGER = logging.getLogger(__name__)


class WhisperTranscriber:
    """Transcribes audio files; the model is loaded once, on first use."""

    def __init__(
        self,
        model_name: str = config.WHISPER_MODEL,
        device: Optional[str] = None,
        num_workers: int = config.MAX_CONCURRENT_JOBS,
    ) -> None:
        self.model_name = model_name
        self.device = device or ("cuda" if torch.cuda.is_available() else "cpu")
        self.compute_type = "float16" if self.device == "cuda" else "int8"
        self.num_workers = num_workers
        self._model = None
        self._lock = threading.Lock()

    @property
    def model(self) -> WhisperModel:
        with self._lock:
            if self._model is None:
                LOGGER.info("Loading faster-whisper model %s...", self.model_name)
                self._model = WhisperModel(
                    self.model_name,
                    device=self.device,
                    compute_type=self.compute_type,
                    num_workers=self.num_workers,
                )
                LOGGER.info("faster-whisper model loaded on %s with %s", self.device, self.compute_type)
            return self._model

    def transcribe(self, audio_file: str) -> Transcript:
        try:
            raw_segments, info = self.model.transcribe(audio_file)
            # segments are produced lazily, decoding happens while iterating
            raw_segments = list(raw_segments)
        except Exception as e:
            LOGGER.exception("Transcription failed")
            raise TranscriptionError(f"Failed to transcribe: {e}") from e

        text = "".join(segment.text for segment in raw_segments).strip()
        segments = tuple(
            Segment(start=segment.start, end=segment.end, text=segment.text.strip())
            for segment in raw_segments
        )
        return Transcript(
            text=text,
            segments=segments,
            language=getattr(info, "language", None),
            duration=getattr(info, "duration", None),
        )
