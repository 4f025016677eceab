"""
HTTP surface: JSON API for posts and jobs, uploaded media, admin and
frontend pages.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .attachments import AdmissionPolicy, AttachmentStore
from .config import Settings
from .errors import NotFoundError, SiteCMSError, ValidationError
from .logger import StructuredLogger, get_logger
from .records import make_job, make_post
from .storage import CollectionStore


@dataclass
class Context:
    settings: Settings
    posts: CollectionStore
    jobs: CollectionStore
    attachments: AttachmentStore
    logger: StructuredLogger


def get_context(request: Request) -> Context:
    return request.app.state.ctx


async def submitted_fields(request: Request) -> Dict[str, Any]:
    """Form or JSON body as a flat dict. Uploaded files stay UploadFile objects."""
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            data = await request.json()
        except ValueError as e:
            raise ValidationError(["Request body is not valid JSON"]) from e
        if not isinstance(data, dict):
            raise ValidationError(["Request body must be a JSON object"])
        return data
    form = await request.form()
    return dict(form)


def _serve_file(path: Optional[Path], what: str) -> FileResponse:
    if path is None or not path.is_file():
        raise NotFoundError(f"{what} not found")
    return FileResponse(path)


def _frontend_file(root: Optional[Path], page: str) -> Optional[Path]:
    if root is None:
        return None
    base = root.resolve()
    candidate = (base / page).resolve()
    if candidate != base and base not in candidate.parents:
        return None
    return candidate


def create_app(settings: Optional[Settings] = None, logger: Optional[StructuredLogger] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    if logger is None:
        logger = get_logger(level=settings.log_level)
        # The global logger may predate these settings
        logger.set_level(settings.log_level)

    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    app = FastAPI(title="Site CMS", version=__version__)
    app.state.ctx = Context(
        settings=settings,
        posts=CollectionStore(settings.posts_file, name="posts", logger=logger),
        jobs=CollectionStore(settings.jobs_file, name="jobs", logger=logger),
        attachments=AttachmentStore(
            settings.upload_dir,
            AdmissionPolicy.from_settings(settings),
            public_prefix=settings.upload_prefix,
            logger=logger,
        ),
        logger=logger,
    )
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.exception_handler(SiteCMSError)
    def handle_cms_error(request: Request, exc: SiteCMSError):
        body = {"success": False, "error": str(exc)}
        if isinstance(exc, ValidationError):
            body["errors"] = exc.errors
        log = logger.error if exc.status_code >= 500 else logger.warning
        log("Request failed", method=request.method, path=request.url.path,
            error_type=type(exc).__name__, error=str(exc))
        logger.record_error(type(exc).__name__)
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(StarletteHTTPException)
    def handle_http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"success": False, "error": str(exc.detail)},
                            headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    def handle_bad_request(request: Request, exc: RequestValidationError):
        errors = [f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()]
        logger.warning("Malformed request", method=request.method, path=request.url.path, errors=errors)
        return JSONResponse(status_code=422, content={"success": False, "error": "Malformed request", "errors": errors})

    # Posts

    @app.get("/api/posts")
    def list_posts(ctx: Context = Depends(get_context)):
        return ctx.posts.load_all()

    @app.post("/api/posts")
    def create_post(fields: Dict[str, Any] = Depends(submitted_fields), ctx: Context = Depends(get_context)):
        media = fields.get("media")
        post = make_post({k: fields.get(k) for k in ("title", "content", "type")},
                         strict=ctx.settings.strict_validation)
        # Admission runs before the collection is read
        post["media"] = ctx.attachments.ingest(media if isinstance(media, UploadFile) else None)
        try:
            ctx.posts.prepend(post)
        except Exception:
            ctx.attachments.discard(post["media"])
            raise
        return {"success": True}

    @app.delete("/api/posts/{record_id}")
    def delete_post(record_id: int, ctx: Context = Depends(get_context)):
        if not ctx.posts.exists():
            return {"success": False}
        ctx.posts.delete_by_id(record_id)
        return {"success": True}

    # Jobs

    @app.get("/api/jobs")
    def list_jobs(ctx: Context = Depends(get_context)):
        return ctx.jobs.load_all()

    @app.post("/api/jobs")
    def create_job(fields: Dict[str, Any] = Depends(submitted_fields), ctx: Context = Depends(get_context)):
        job = make_job({k: fields.get(k) for k in ("title", "link", "company")},
                       strict=ctx.settings.strict_validation)
        ctx.jobs.prepend(job)
        return {"success": True}

    @app.delete("/api/jobs/{record_id}")
    def delete_job(record_id: int, ctx: Context = Depends(get_context)):
        if not ctx.jobs.exists():
            return {"success": False}
        ctx.jobs.delete_by_id(record_id)
        return {"success": True}

    # Files

    @app.get(settings.upload_prefix + "/{filename}")
    def get_upload(filename: str, ctx: Context = Depends(get_context)):
        return FileResponse(ctx.attachments.resolve(filename))

    @app.get("/admin")
    def admin_page(ctx: Context = Depends(get_context)):
        return _serve_file(ctx.settings.admin_page, "Admin page")

    @app.get("/")
    def index(ctx: Context = Depends(get_context)):
        return _serve_file(_frontend_file(ctx.settings.frontend_dir, "index.html"), "Page")

    @app.get("/{page:path}")
    def frontend_page(page: str, ctx: Context = Depends(get_context)):
        return _serve_file(_frontend_file(ctx.settings.frontend_dir, page), "Page")

    logger.info("App created", posts_file=str(settings.posts_file), jobs_file=str(settings.jobs_file),
                upload_dir=str(settings.upload_dir), upload_mode=settings.upload_mode)
    return app
