import argparse
import json
from pathlib import Path

from . import __version__
from .config import Settings
from .env import load_env
from .errors import StorageCorruptError
from .logger import get_logger
from .storage import CollectionStore


def _settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    return settings.override(
        posts_file=Path(args.posts_file) if getattr(args, "posts_file", None) else None,
        jobs_file=Path(args.jobs_file) if getattr(args, "jobs_file", None) else None,
        upload_dir=Path(args.upload_dir) if getattr(args, "upload_dir", None) else None,
        frontend_dir=Path(args.frontend_dir) if getattr(args, "frontend_dir", None) else None,
        admin_page=Path(args.admin_page) if getattr(args, "admin_page", None) else None,
        upload_mode=getattr(args, "upload_mode", None),
        max_upload_bytes=getattr(args, "max_upload_bytes", None),
        strict_validation=True if getattr(args, "strict", False) else None,
        host=getattr(args, "host", None),
        port=getattr(args, "port", None),
        log_level=getattr(args, "log_level", None),
    )


def _store(settings: Settings, collection: str) -> CollectionStore:
    path = settings.posts_file if collection == "posts" else settings.jobs_file
    return CollectionStore(path, name=collection)


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn
    from .api import create_app

    settings = _settings(args)
    logger = get_logger(level=settings.log_level, log_dir=settings.log_dir,
                        enable_file=settings.log_dir is not None)
    logger.set_level(settings.log_level)
    app = create_app(settings, logger=logger)
    logger.info(f"Server running at http://localhost:{settings.port}")
    logger.info(f"Admin panel: http://localhost:{settings.port}/admin")
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    finally:
        logger.log_metrics_summary()


def cmd_list(args: argparse.Namespace) -> None:
    settings = _settings(args)
    store = _store(settings, args.collection)
    if not store.exists():
        print(f"Store not found: {store.path}")
        return
    try:
        records = store.load_all()
    except StorageCorruptError as e:
        raise SystemExit(str(e))
    if args.json:
        print(json.dumps(records, indent=2, ensure_ascii=False))
        return
    if not records:
        print(f"No {args.collection} in store.")
        return
    print(f"Found {len(records)} {args.collection} in {store.path}:\n")
    for record in records:
        print(f"ID: {record.get('id')}")
        for key, value in record.items():
            if key != "id":
                print(f"  {key.capitalize()}: {value}")
        print()


def cmd_delete(args: argparse.Namespace) -> None:
    settings = _settings(args)
    store = _store(settings, args.collection)
    if not store.exists():
        raise SystemExit(f"Store not found: {store.path}")
    try:
        removed = store.delete_by_id(args.id)
    except StorageCorruptError as e:
        raise SystemExit(str(e))
    print(f"Removed: {args.id}" if removed else f"No record with id {args.id}")


def _add_store_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--posts-file", help="Path to posts JSON (default: data/posts.json)")
    p.add_argument("--jobs-file", help="Path to jobs JSON (default: data/jobs.json)")


def main(argv=None):
    # Load .env if present (SITECMS_*, PORT)
    load_env()
    parser = argparse.ArgumentParser(prog="sitecms", description="Site CMS: posts, jobs and media uploads")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    srv = subparsers.add_parser("serve", help="Run the HTTP server")
    _add_store_args(srv)
    srv.add_argument("--upload-dir", help="Directory for uploaded media (default: uploads)")
    srv.add_argument("--frontend-dir", help="Directory with the public site pages")
    srv.add_argument("--admin-page", help="HTML file served at /admin")
    srv.add_argument("--upload-mode", choices=["images", "legacy"], help="Upload admission policy")
    srv.add_argument("--max-upload-bytes", type=int, help="Override the upload size ceiling")
    srv.add_argument("--strict", action="store_true", help="Reject posts/jobs with missing required fields")
    srv.add_argument("--host", help="Bind address (default: 0.0.0.0)")
    srv.add_argument("--port", type=int, help="Listen port (default: 4000, or $PORT)")
    srv.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log level")
    srv.set_defaults(func=cmd_serve)

    lst = subparsers.add_parser("list", help="Print a collection")
    lst.add_argument("collection", choices=["posts", "jobs"])
    lst.add_argument("--json", action="store_true", help="Print raw JSON")
    _add_store_args(lst)
    lst.set_defaults(func=cmd_list)

    dele = subparsers.add_parser("delete", help="Delete a record by id")
    dele.add_argument("collection", choices=["posts", "jobs"])
    dele.add_argument("--id", type=int, required=True, help="Record id")
    _add_store_args(dele)
    dele.set_defaults(func=cmd_delete)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
