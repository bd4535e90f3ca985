"""Example of how to serve the job status and metrics endpoints."""
from __future__ import annotations

import argparse
import logging
import os
import tempfile

import uvicorn
from fastapi import FastAPI

from pyworkqueue import FileReportRenderer, MessageSender, create_queue_manager
from pyworkqueue.integrations.fastapi import add_pyworkqueue_to_fastapi

logger = logging.getLogger(__name__)


class LoggingSender(MessageSender):
    def send(self, recipient, subject, body, attachments=None):
        logger.info(f"Message to {recipient}: {subject} ({len(attachments or [])} attachment(s))")
        return {"delivered": True}


def create_app(report_dir: str) -> FastAPI:
    app = FastAPI(title="pyworkqueue")
    manager, cache = create_queue_manager(LoggingSender(), FileReportRenderer(report_dir))
    plugin = add_pyworkqueue_to_fastapi(app, manager, cache)
    plugin.include_routes()
    return app


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve pyworkqueue job status endpoints")
    parser.add_argument(
        "--report-dir",
        default=os.getenv("PYWORKQUEUE_REPORT_DIR", tempfile.gettempdir()),
        help="Directory for rendered reports (env: PYWORKQUEUE_REPORT_DIR).",
    )
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    return parser


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    args = build_arg_parser().parse_args()
    uvicorn.run(create_app(args.report_dir), host=args.host, port=args.port)
