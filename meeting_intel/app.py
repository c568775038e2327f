from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pathlib import Path
import logging
import os

from . import __version__
from .routers.summarize import router as summarize_router
from .routers.sessions import router as sessions_router
from .routers.summary_config import router as summary_config_router
from .config import load_settings
from .logging import setup_logging, install_app_logging
from .errors import install_error_handlers
from .services import history
from .state import State

STATIC_DIR = Path(__file__).resolve().parent / "static"


def _load_env_file(env_path: Path) -> None:
    """Minimal .env loader: KEY=VALUE lines into os.environ if not set.
    - Ignores comments and blank lines
    - Strips surrounding quotes
    - Supports optional 'export ' prefix
    """
    if not env_path.exists():
        return
    for raw in env_path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.lower().startswith("export "):
            line = line[7:].lstrip()
        if "=" not in line:
            continue
        k, v = line.split("=", 1)
        key = k.strip()
        val = v.strip().strip('"').strip("'")
        os.environ.setdefault(key, val)


def create_app() -> FastAPI:
    # Load environment from optional .env files (repo root, then cwd)
    package_dir = Path(__file__).resolve().parent
    for env_path in (package_dir.parent / ".env", Path.cwd() / ".env"):
        try:
            _load_env_file(env_path)
        except OSError as e:
            logging.getLogger("app").warning(f"could not read {env_path}: {e}")

    settings = load_settings()
    setup_logging()

    app = FastAPI(title="Meeting Intelligence Worker", version=__version__)

    # Attach config/state
    app.state.settings = settings
    app.state.state = State()

    # Ensure database schema exists before handling requests
    try:
        history.initialize(settings)
    except Exception as e:
        logging.getLogger("app").warning(f"initialize_db failed: {e}")

    # CORS
    allow = [o.strip() for o in settings.cors_allow_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_app_logging(app)
    install_error_handlers(app)

    # Versioned API
    app.include_router(summarize_router, prefix="/v1")
    app.include_router(sessions_router, prefix="/v1")
    app.include_router(summary_config_router, prefix="/v1")

    @app.get("/health")
    def health():  # pragma: no cover - trivial
        return {"status": "ok", "version": __version__}

    # Single-page UI
    @app.get("/", include_in_schema=False)
    def index():
        return FileResponse(STATIC_DIR / "index.html", media_type="text/html")

    return app


# Convenience for `uvicorn meeting_intel.app:app`
app = create_app()
