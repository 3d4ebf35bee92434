"""
app.py — clubsite: Club Website API

Two subsystems behind one HTTP surface:
  Knowledge Router  — POST /chat
      rule-based answers from local club knowledge, with a generative
      backend for questions the rules cannot answer confidently
  Feed Resolver     — GET/POST /data, GET /feeds/{name}
      named feeds resolved remote store → bundled file → 404, and the
      projects feed merged with the cached social posts
  Social cache      — GET /social-cache, POST /social-refresh

Architecture:
  Browser ──▶ clubsite ──▶ Remote store (site-data, social-cache)
                  │
                  ├── Knowledge files (data/*.json)
                  ├── Claude API (only when local answers fall short)
                  └── Instagram Graph API (refresh only)

Usage:
  export ADMIN_TOKEN="..."  ANTHROPIC_API_KEY="sk-ant-..."
  clubsite                      # or: python -m clubsite.app
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from clubsite import __version__
from clubsite.config import Settings, load_settings
from clubsite.errors import ClubSiteError, InvalidRequest, NotFound
from clubsite.feeds import (
    DataSourceResolver,
    FeedName,
    RemoteStore,
    SocialCache,
    SocialFeedFetcher,
    feed_view,
    parse_feed_name,
)
from clubsite.knowledge import (
    AnthropicBackend,
    GenerativeBackend,
    IntentMatcher,
    KnowledgeRouter,
    KnowledgeStore,
    Question,
)
from clubsite.middleware import ADMIN_HEADER, AdminGuard, AdminTokenAuth
from clubsite.models import (
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    HealthComponent,
    HealthResponse,
    RefreshSummary,
    WriteResult,
)

# ── Logging ──────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(name)-16s │ %(levelname)-7s │ %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("clubsite.server")

SERVER_START_TIME = time.time()


def _write_result(ok: bool, error: str | None = None) -> JSONResponse:
    return JSONResponse(status_code=200, content=WriteResult(ok=ok, error=error).model_dump(exclude_none=True))


# ── Services ─────────────────────────────────────────────────────

@dataclass
class Services:
    settings: Settings
    guard: AdminGuard
    remote: RemoteStore
    resolver: DataSourceResolver
    social: SocialFeedFetcher
    router: KnowledgeRouter

    async def close(self):
        await self.remote.close()
        await self.social.close()


def build_services(
    settings: Settings,
    backend: GenerativeBackend | None = None,
    remote_transport: httpx.AsyncBaseTransport | None = None,
    social_transport: httpx.AsyncBaseTransport | None = None,
) -> Services:
    guard = AdminGuard(settings.admin_token)
    remote = RemoteStore(
        settings.remote_store_url,
        token=settings.remote_store_token,
        timeout=settings.http_timeout,
        transport=remote_transport,
    )

    if backend is None and settings.generative_enabled:
        backend = AnthropicBackend(
            api_key=settings.anthropic_api_key,
            model=settings.model,
            timeout=settings.http_timeout * 3,
        )
    elif backend is None:
        log.warning("ANTHROPIC_API_KEY not set — chat answers will be local only")

    router = KnowledgeRouter(
        store=KnowledgeStore(settings.knowledge_base_dir),
        matcher=IntentMatcher(org_aliases=settings.org_aliases),
        backend=backend,
        default_context=settings.default_knowledge,
        min_local_answer_chars=settings.min_local_answer_chars,
    )

    return Services(
        settings=settings,
        guard=guard,
        remote=remote,
        resolver=DataSourceResolver(remote, settings.data_dir, guard),
        social=SocialFeedFetcher(settings, remote, transport=social_transport),
        router=router,
    )


# ═════════════════════════════════════════════════════════════════
#  APP FACTORY
# ═════════════════════════════════════════════════════════════════


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    settings = settings or (services.settings if services else load_settings())
    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("=" * 60)
        log.info("  clubsite — Club Website API")
        log.info(f"  Model:        {settings.model}")
        log.info(f"  Remote store: {settings.remote_store_url or 'NOT BOUND (bundled files only)'}")
        log.info(f"  Data dir:     {settings.data_dir}")
        log.info(f"  API Key:      {'configured' if settings.generative_enabled else 'NOT SET'}")
        log.info(f"  Admin token:  {'configured' if services.guard.configured else 'NOT SET'}")
        log.info(f"  Instagram:    {'configured' if settings.social_enabled else 'NOT SET'}")
        log.info("=" * 60)

        yield

        await services.close()
        log.info("clubsite server stopped.")

    app = FastAPI(
        title="clubsite API",
        description="Club knowledge chat and content feeds.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    # Auth first so CORS (added last, outermost) also wraps 401 responses.
    app.add_middleware(AdminTokenAuth, guard=services.guard)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", ADMIN_HEADER],
    )

    # ── Error Mapping ────────────────────────────────────────────

    @app.exception_handler(ClubSiteError)
    async def clubsite_error(request: Request, exc: ClubSiteError):
        return JSONResponse(status_code=exc.status_code, content=ErrorResponse(error=exc.reason or "Error").model_dump())

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=ErrorResponse(error="Invalid request").model_dump())

    # ── Health ───────────────────────────────────────────────────

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health():
        remote_ok = await services.remote.is_healthy()
        components = {
            "remote_store": HealthComponent(
                status="ok" if remote_ok else ("error" if services.remote.bound else "disabled"),
                detail=settings.remote_store_url or "not bound",
            ),
            "generative": HealthComponent(
                status="ok" if services.router.backend is not None else "disabled",
                detail=f"model: {settings.model}" if services.router.backend is not None else "local answers only",
            ),
            "social": HealthComponent(status="ok" if settings.social_enabled else "disabled"),
            "admin": HealthComponent(status="ok" if services.guard.configured else "disabled"),
        }
        overall = "ok" if all(c.status == "ok" for c in components.values()) else "degraded"
        return HealthResponse(
            status=overall,
            version=__version__,
            uptime_seconds=int(time.time() - SERVER_START_TIME),
            components=components,
        )

    # ── Feeds ────────────────────────────────────────────────────

    @app.api_route("/data", methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"], tags=["Feeds"])
    async def data(request: Request):
        feed = parse_feed_name(request.query_params.get("name", ""))

        if request.method == "OPTIONS":
            return Response(status_code=204)

        if request.method == "GET":
            try:
                resolved = await services.resolver.resolve(feed)
            except ClubSiteError:
                raise
            except Exception as e:
                log.error(f"data-read error for {feed.value}: {e}")
                return JSONResponse(status_code=200, content={})
            if resolved is None:
                raise NotFound("Not found")
            return JSONResponse(status_code=200, content=resolved.document)

        if request.method == "POST":
            try:
                payload = json.loads(await request.body() or b"{}")
            except ValueError:
                log.error(f"data-write for {feed.value}: body is not JSON")
                return _write_result(ok=False, error="Invalid JSON body")
            try:
                ok = await services.resolver.store(feed, payload, request.headers.get(ADMIN_HEADER))
            except ClubSiteError:
                raise
            except Exception as e:
                log.error(f"data-write error for {feed.value}: {e}")
                ok = False
            return _write_result(ok=ok)

        return JSONResponse(
            status_code=405,
            content={"error": "Method Not Allowed"},
            headers={"Allow": "GET, POST"},
        )

    @app.get("/feeds/{name}", tags=["Feeds"])
    async def feed_endpoint(name: str):
        feed_name = parse_feed_name(name)
        try:
            resolved = await services.resolver.resolve(feed_name)
            cache = await services.social.read_cache() if feed_name == FeedName.PROJECTS else None
        except ClubSiteError:
            raise
        except Exception as e:
            log.error(f"feed view error for {feed_name.value}: {e}")
            return JSONResponse(status_code=200, content={})

        if resolved is None and not (cache and cache.items):
            raise NotFound("Not found")
        return feed_view(feed_name, resolved.document if resolved else None, cache)

    # ── Social Cache ─────────────────────────────────────────────

    @app.get("/social-cache", response_model=SocialCache, tags=["Social"])
    async def social_cache():
        try:
            return await services.social.read_cache()
        except Exception as e:
            log.error(f"Social cache read error: {e}")
            return SocialCache()

    @app.post("/social-refresh", response_model=RefreshSummary, tags=["Social"])
    async def social_refresh():
        try:
            return await services.social.refresh()
        except Exception as e:
            log.error(f"Refresh error: {e}")
            return RefreshSummary(ok=False, message="Refresh failed")

    # ── Chat ─────────────────────────────────────────────────────

    @app.post("/chat", response_model=ChatResponse, tags=["Chat"])
    def chat(req: ChatRequest):
        text = req.question.strip()
        if not text:
            raise InvalidRequest("Missing question")

        result = services.router.answer(Question(text=text, context_files=tuple(req.contextFiles or ())))
        return ChatResponse(answer=result.text, source=result.origin.value)

    return app


app = create_app()


# ── Entrypoint ───────────────────────────────────────────────────

def main():
    uvicorn.run(
        "clubsite.app:app",
        host="0.0.0.0",
        port=8787,
        log_level="info",
        reload=False,
    )


if __name__ == "__main__":
    main()
