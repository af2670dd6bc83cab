"""Flask server that transcribes remote videos in the background.

Job state lives only in process memory: a restart loses every job.
"""

import logging

from flask import Flask, request, jsonify

import config
from downloader import YtDlpDownloader
from errors import JobNotFoundError, ValidationError
from job_manager import JobManager
from job_store import JobStore
from sweeper import Sweeper
from transcriber import WhisperTranscriber

logging.basicConfig(level=config.LOG_LEVEL,
                    format="%(asctime)s %(levelname)s %(message)s")
LOGGER = logging.getLogger(__name__)

app = Flask(__name__)

job_store = JobStore()
job_manager = JobManager(job_store, YtDlpDownloader(), WhisperTranscriber())
sweeper = Sweeper(job_store)
if config.START_SWEEPER:
    sweeper.start()


@app.after_request
def allow_cross_origin(response):
    response.headers["Access-Control-Allow-Origin"] = config.CORS_ORIGIN
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    return response


@app.route("/", methods=["GET"])
def health():
    return jsonify({"status": "Transcriber is running!"})


@app.route("/transcribe", methods=["POST"])
def start_transcription():
    """Queue a transcription job and return its id right away."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    try:
        job = job_manager.submit(data.get("url"))
    except ValidationError as e:
        return jsonify({"error": e.message}), 400
    return jsonify({"jobId": job.job_id, "status": job.status.value})


@app.route("/status/<job_id>", methods=["GET"])
def job_status(job_id):
    """Return the current status for a job."""
    try:
        status = job_manager.status(job_id)
    except JobNotFoundError:
        return jsonify({"error": "Job not found", "jobId": job_id}), 404
    LOGGER.info("Status check %s %s", job_id, status["status"])
    return jsonify(status)


if __name__ == "__main__":
    LOGGER.info("Starting transcription server on http://%s:%s", config.HOST, config.PORT)
    app.run(host=config.HOST, port=config.PORT)
