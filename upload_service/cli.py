from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="upload-analyzer",
        description="Upload local files to GCS and analyze them with Gemini",
    )

    p.add_argument("files", nargs="+", help="Local file paths to upload (one batch)")
    p.add_argument(
        "--prefix",
        default=None,
        help="Object path prefix in the bucket (default from env UPLOAD_PATH_PREFIX)",
    )
    p.add_argument(
        "--policy",
        choices=["fail_fast", "best_effort"],
        default=None,
        help="Override UPLOAD_FAILURE_POLICY",
    )
    p.add_argument(
        "--concurrency",
        type=int,
        default=-1,
        help="Override UPLOAD_MAX_CONCURRENCY (0 = unbounded)",
    )
    p.add_argument("--type", dest="content_type", default=None, help="Force MIME type for every file")
    p.add_argument("--log-level", default="INFO", help="Python logging level (INFO, DEBUG, ...)")
    return p
