"""Runtime settings, read from the environment and an optional .env file."""

import os

from dotenv import load_dotenv

load_dotenv()

HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "3000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Directory containing ffmpeg binaries; yt-dlp falls back to PATH when unset
FFMPEG_DIR = os.getenv("FFMPEG_DIR") or None

DOWNLOAD_TIMEOUT = float(os.getenv("DOWNLOAD_TIMEOUT", "300"))
MAX_FILE_MB = float(os.getenv("MAX_FILE_MB", "25"))
MAX_CONCURRENT_JOBS = int(os.getenv("MAX_CONCURRENT_JOBS", "4"))

JOB_RETENTION_SECONDS = int(os.getenv("JOB_RETENTION_SECONDS", "3600"))
SWEEP_INTERVAL_SECONDS = int(os.getenv("SWEEP_INTERVAL_SECONDS", "3600"))
START_SWEEPER = os.getenv("START_SWEEPER", "1") not in ("0", "false", "False", "")

WHISPER_MODEL = os.getenv("WHISPER_MODEL", "base")

# Parent directory for per-job artifact workspaces; None means the system temp dir
TEMP_DIR = os.getenv("TRANSCRIBE_TEMP_DIR") or None

CORS_ORIGIN = os.getenv("CORS_ORIGIN", "*")
