from __future__ import annotations

import asyncio
import dataclasses
import logging
import mimetypes
import sys
from pathlib import Path

from google.cloud.storage import Client

from upload_service.analysis.model import AnalysisModel, build_genai_client
from upload_service.cli import build_parser
from upload_service.config import UploadConfig
from upload_service.errors import UploadError, upload_failed_message
from upload_service.logging_config import generate_request_id, set_request_id, setup_logging
from upload_service.models import UploadResponse
from upload_service.pipeline.codec import encode
from upload_service.pipeline.orchestrator import BatchOrchestrator
from upload_service.pipeline.storage import GcsPersister
from upload_service.pipeline.types import FailurePolicy, FileSubmission


def submission_from_path(path: Path, *, content_type: str | None = None) -> FileSubmission:
    data = path.read_bytes()
    mime = content_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return FileSubmission(name=path.name, content_type=mime, size=len(data), encoded_bytes=encode(data))


async def _amain(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level.upper())
    set_request_id(generate_request_id())
    logger = logging.getLogger("upload_service.cli")

    cfg = UploadConfig.from_env()

    # CLI overrides
    overrides: dict[str, object] = {}
    if args.prefix is not None:
        prefix = args.prefix
        if prefix and not prefix.endswith("/"):
            prefix += "/"
        overrides["path_prefix"] = prefix
    if args.policy:
        overrides["failure_policy"] = args.policy
    if args.concurrency >= 0:
        overrides["max_concurrency"] = args.concurrency
    if overrides:
        cfg = dataclasses.replace(cfg, **overrides)
    cfg.validate()

    submissions = [submission_from_path(Path(f), content_type=args.content_type) for f in args.files]

    persister = GcsPersister(client=Client(), bucket=cfg.bucket, prefix=cfg.path_prefix)
    model = AnalysisModel(client=build_genai_client(), model=cfg.analysis_model)
    orchestrator = BatchOrchestrator.from_config(cfg, persister=persister, model=model)

    try:
        if cfg.batch_timeout_seconds > 0:
            batch = await asyncio.wait_for(orchestrator.process(submissions), timeout=cfg.batch_timeout_seconds)
        else:
            batch = await orchestrator.process(submissions)
    except UploadError as e:
        logger.error(upload_failed_message(e))
        return 2
    except TimeoutError:
        logger.error(upload_failed_message(f"timed out after {cfg.batch_timeout_seconds:g}s"))
        return 2

    out = UploadResponse.from_batch(batch, policy=orchestrator.policy)
    sys.stdout.write(out.model_dump_json(indent=2, exclude_none=True) + "\n")
    logger.info("DONE files=%d success=%s", len(batch.files), batch.success)
    return 0 if batch.success else 2


def main() -> None:
    raise SystemExit(asyncio.run(_amain()))


if __name__ == "__main__":
    main()
