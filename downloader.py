"""Audio download through yt-dlp."""

import glob
import logging
import os
import subprocess
import sys
from typing import Optional

import config
from errors import DownloadError

LOGGER = logging.getLogger(__name__)


class YtDlpDownloader:
    """Fetches the audio track of a remote video as an mp3 file."""

    def __init__(self, ffmpeg_dir: Optional[str] = config.FFMPEG_DIR) -> None:
        self.ffmpeg_dir = ffmpeg_dir

    def build_command(self, url: str, output_dir: str) -> list:
        cmd = [
            sys.executable,
            "-m",
            "yt_dlp",
            "-x",
            "--audio-format",
            "mp3",
            "--audio-quality",
            "0",
            "--no-playlist",
        ]
        if self.ffmpeg_dir:
            cmd += ["--ffmpeg-location", self.ffmpeg_dir]
        cmd += ["-o", os.path.join(output_dir, "audio.%(ext)s"), url]
        return cmd

    def fetch(self, url: str, timeout: float, output_dir: str) -> str:
        env = os.environ.copy()
        if self.ffmpeg_dir:
            env["PATH"] = env.get("PATH", "") + os.pathsep + self.ffmpeg_dir
        try:
            subprocess.run(
                self.build_command(url, output_dir),
                check=True,
                env=env,
                timeout=timeout,
                capture_output=True,
                text=True,
            )
        except subprocess.TimeoutExpired as e:
            LOGGER.error("yt-dlp timed out after %ss for %s", timeout, url)
            raise DownloadError(f"Download timed out after {timeout:g}s") from e
        except subprocess.CalledProcessError as e:
            LOGGER.error("yt-dlp error: %s", e.stderr)
            raise DownloadError("Failed to download video") from e

        mp3_files = glob.glob(os.path.join(output_dir, "*.mp3"))
        if not mp3_files:
            raise DownloadError("No MP3 file was downloaded.")
        LOGGER.info("Found audio file: %s", mp3_files[0])
        return mp3_files[0]
