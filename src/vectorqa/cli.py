import argparse
import logging
import sys
from pathlib import Path

import uvicorn

from vectorqa.config import find_config_path, get_config_value, get_int, load_config
from vectorqa.errors import VectorQAError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_PORT = 9000


def configure_logging(config: dict) -> None:
    level = str(get_config_value(config, "logging.level", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def serve(config_path: Path, host: str | None, port: int | None) -> int:
    from vectorqa.api import ServiceContainer, create_app

    config = load_config(config_path)
    configure_logging(config)

    app = create_app(ServiceContainer(config=config, config_path=config_path))
    uvicorn.run(
        app,
        host=host or get_config_value(config, "server.host", "0.0.0.0"),
        port=port or get_int(config, "server.port", DEFAULT_PORT),
        log_config=None,
    )
    return 0


def ingest(config_path: Path) -> int:
    from vectorqa.pipelines import run_ingestion

    configure_logging(load_config(config_path))

    try:
        report = run_ingestion(config_path)
    except VectorQAError as e:
        print(f"Error ({e.error_type}): {e}", file=sys.stderr)
        return 1

    print("\n=== Ingestion Complete ===")
    print(f"Index: {report.index_name}")
    print(f"Documents processed: {report.documents}")
    print(f"Chunks created: {report.chunks}")
    print(f"Upsert batches: {report.batches}")
    print(f"Total vectors in store: {report.total_vectors}")
    if report.failures:
        print(f"Failed documents: {len(report.failures)}")
        for failure in report.failures:
            print(f"  {failure.source_path}: [{failure.error_type}] {failure.message}")
        return 2
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="vectorqa",
        description="Index documents into a vector database and answer questions over them",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: $VECTORQA_CONFIG or config.toml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)

    subparsers.add_parser("ingest", help="Index every document in the ingestion directory")

    args = parser.parse_args(argv)

    try:
        config_path = find_config_path(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.command == "serve":
        return serve(config_path, args.host, args.port)
    return ingest(config_path)


if __name__ == "__main__":
    sys.exit(main())
