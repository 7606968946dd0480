# Complaint Desk: local complaint submission and tracking
# FastAPI + Jinja2 over a local key-value store

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from . import config
from .errors import EncodingError, StoreParseError, ValidationError
from .media import encode_media, is_video
from .models import Category, Complaint, ComplaintStatus, Priority, User
from .repository import ComplaintRepository, check_submission
from .session import SessionStore, make_user
from .store import JsonFileStore

config.configure_logging()
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App & Globals
# ---------------------------------------------------------------------------
app = FastAPI(title="Complaint Desk")
limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; "
            "media-src 'self' data:; "
            "frame-ancestors 'none'"
        )
        return response


app.add_middleware(SecurityHeadersMiddleware)

session_store: Optional[SessionStore] = None
repository: Optional[ComplaintRepository] = None

templates = Jinja2Templates(directory=str(config.TEMPLATE_DIR))
templates.env.globals.update(categories=list(Category), priorities=list(Priority),
                             statuses=list(ComplaintStatus), is_video=is_video)
app.mount("/static", StaticFiles(directory=str(config.STATIC_DIR)), name="static")

SUBMIT_ERROR = "Failed to submit complaint. Please try again."
FIELD_LABELS = {"title": "title", "description": "description", "category": "category",
                "priority": "priority", "location": "location", "userId": "signed-in user"}

# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------
def startup_store():
    global session_store, repository
    store = JsonFileStore(config.DATA_FILE)
    session_store = SessionStore(store)
    repository = ComplaintRepository(store)
    logger.info("Local store: %s", config.DATA_FILE)


@asynccontextmanager
async def lifespan(app: FastAPI):
    startup_store()
    yield

app.router.lifespan_context = lifespan

# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
def get_session_store() -> SessionStore:
    if session_store is None:
        startup_store()
    return session_store


def get_repository() -> ComplaintRepository:
    if repository is None:
        startup_store()
    return repository


def require_user(sessions: SessionStore = Depends(get_session_store)) -> User:
    user = sessions.current_session()
    if user is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    return user

# ---------------------------------------------------------------------------
# Page helpers
# ---------------------------------------------------------------------------
def login_redirect() -> RedirectResponse:
    return RedirectResponse("/login", status_code=303)


def render(request: Request, template: str, context: dict, status_code: int = 200):
    response = templates.TemplateResponse(request, template, context, status_code=status_code)
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    response.headers["Pragma"] = "no-cache"
    return response


def parse_status_filter(value: Optional[str]) -> Optional[ComplaintStatus]:
    if not value or value.lower() == "all":
        return None
    try:
        return ComplaintStatus(value)
    except ValueError:
        return None


def safe_next(target: Optional[str], default: str = "/complaints") -> str:
    if target in ("/home", "/complaints") or (target or "").startswith(("/home?", "/complaints?")):
        return target
    return default


def render_home(request: Request, user: User, repo: ComplaintRepository, *,
                error: Optional[str] = None, form: Optional[Dict[str, str]] = None,
                submitted: bool = False, status_code: int = 200):
    complaints = repo.list_all()
    summary = repo.summary()
    return render(request, "home.html", {
        "user": user, "complaints": complaints, "summary": summary,
        "error": error, "form": form or {}, "submitted": submitted,
    }, status_code=status_code)

# ---------------------------------------------------------------------------
# AUTH PAGES (mock login)
# ---------------------------------------------------------------------------
@app.get("/", include_in_schema=False)
async def index(sessions: SessionStore = Depends(get_session_store)):
    if sessions.current_session() is None:
        return login_redirect()
    return RedirectResponse("/home", status_code=303)


@app.get("/login", response_class=HTMLResponse, include_in_schema=False)
async def login_page(request: Request, sessions: SessionStore = Depends(get_session_store)):
    if sessions.current_session() is not None:
        return RedirectResponse("/home", status_code=303)
    return render(request, "login.html", {"error": None, "form": {}})


@app.post("/login", include_in_schema=False)
@limiter.limit(config.LOGIN_RATE_LIMIT)
async def do_login(request: Request, name: str = Form(""), email: str = Form(""),
                   sessions: SessionStore = Depends(get_session_store)):
    if "@" not in email or not email.strip():
        return render(request, "login.html",
                      {"error": "Please enter a valid email address", "form": {"name": name, "email": email}},
                      status_code=422)
    sessions.begin_session(make_user(name, email))
    return RedirectResponse("/home", status_code=303)


@app.api_route("/logout", methods=["GET", "POST"], include_in_schema=False)
async def logout(sessions: SessionStore = Depends(get_session_store)):
    sessions.end_session()
    return login_redirect()

# ---------------------------------------------------------------------------
# VIEWS
# ---------------------------------------------------------------------------
@app.get("/home", response_class=HTMLResponse, include_in_schema=False)
async def home(request: Request, submitted: bool = False,
               sessions: SessionStore = Depends(get_session_store),
               repo: ComplaintRepository = Depends(get_repository)):
    user = sessions.current_session()
    if user is None:
        return login_redirect()
    return render_home(request, user, repo, submitted=submitted)


@app.get("/complaints", response_class=HTMLResponse, include_in_schema=False)
async def complaints_page(request: Request, status: Optional[str] = None,
                          sessions: SessionStore = Depends(get_session_store),
                          repo: ComplaintRepository = Depends(get_repository)):
    user = sessions.current_session()
    if user is None:
        return login_redirect()
    status_filter = parse_status_filter(status)
    return render(request, "complaints.html", {
        "user": user, "complaints": repo.list_for_user(user.id, status_filter),
        "status_filter": status_filter,
    })


@app.get("/notifications", response_class=HTMLResponse, include_in_schema=False)
async def notifications_page(request: Request, sessions: SessionStore = Depends(get_session_store)):
    user = sessions.current_session()
    if user is None:
        return login_redirect()
    return render(request, "notifications.html", {"user": user})


@app.get("/profile", response_class=HTMLResponse, include_in_schema=False)
async def profile_page(request: Request, sessions: SessionStore = Depends(get_session_store),
                       repo: ComplaintRepository = Depends(get_repository)):
    user = sessions.current_session()
    if user is None:
        return login_redirect()
    return render(request, "profile.html", {"user": user, "summary": repo.summary(user.id)})

# ---------------------------------------------------------------------------
# COMPLAINT ACTIONS
# ---------------------------------------------------------------------------
@app.post("/complaints", include_in_schema=False)
@limiter.limit(config.SUBMIT_RATE_LIMIT)
async def submit_complaint(request: Request,
                           title: str = Form(""), description: str = Form(""),
                           category: str = Form(""), priority: str = Form(""),
                           location: str = Form(""),
                           media: Optional[List[UploadFile]] = File(None),
                           sessions: SessionStore = Depends(get_session_store),
                           repo: ComplaintRepository = Depends(get_repository)):
    user = sessions.current_session()
    if user is None:
        return login_redirect()
    form = {"title": title, "description": description, "category": category,
            "priority": priority, "location": location}
    try:
        check_submission({**form, "userId": user.id})
        media_urls = await encode_media(media or [])
        if config.SUBMIT_DELAY_SECONDS > 0:
            await asyncio.sleep(config.SUBMIT_DELAY_SECONDS)
        complaint = repo.append({**form, "media": media_urls, "userId": user.id})
    except ValidationError as e:
        names = ", ".join(FIELD_LABELS.get(f, f) for f in e.fields)
        return render_home(request, user, repo, form=form, status_code=422,
                           error=f"Please fill in all fields, including location (missing or invalid: {names})")
    except (EncodingError, StoreParseError) as e:
        logger.warning("Submission by %s failed: %s", user.email, e)
        return render_home(request, user, repo, form=form, error=SUBMIT_ERROR,
                           status_code=400 if isinstance(e, EncodingError) else 500)
    except Exception as e:
        logger.error("Error creating complaint: %s", e)
        return render_home(request, user, repo, form=form, error=SUBMIT_ERROR, status_code=500)
    logger.info("Complaint %s submitted by %s with %d attachment(s)",
                complaint.id, user.email, len(complaint.media))
    return RedirectResponse("/home?submitted=1", status_code=303)


@app.post("/complaints/{complaint_id}/resolve", include_in_schema=False)
async def resolve_complaint(complaint_id: str, next_url: str = Form("/complaints", alias="next"),
                            sessions: SessionStore = Depends(get_session_store),
                            repo: ComplaintRepository = Depends(get_repository)):
    if sessions.current_session() is None:
        return login_redirect()
    try:
        repo.mark_resolved(complaint_id)
    except StoreParseError as e:
        logger.error("Could not resolve complaint %s: %s", complaint_id, e)
    return RedirectResponse(safe_next(next_url), status_code=303)

# ---------------------------------------------------------------------------
# JSON API
# ---------------------------------------------------------------------------
@app.get("/api/session", response_model=User)
async def api_session(user: User = Depends(require_user)):
    return user


@app.get("/api/complaints", response_model=List[Complaint])
async def api_complaints(status: Optional[ComplaintStatus] = Query(None),
                         user: User = Depends(require_user),
                         repo: ComplaintRepository = Depends(get_repository)):
    return repo.list_for_user(user.id, status)


@app.get("/api/complaints/summary")
async def api_summary(scope: str = Query("mine", pattern="^(mine|all)$"),
                      user: User = Depends(require_user),
                      repo: ComplaintRepository = Depends(get_repository)):
    return repo.summary(user.id if scope == "mine" else None)


@app.get("/health")
async def health():
    return {"status": "healthy", "system": "Complaint Desk",
            "timestamp": datetime.now(timezone.utc)}


def main():
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
