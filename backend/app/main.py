from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Query, Response, status
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from . import schemas
from .core.config import Settings, get_settings, settings
from .core.logging import configure_logging
from .core.security import credentials_match, require_admin
from .repositories import SolutionRepository
from .services.contest_service import ContestFeed, ContestQuery, ContestService
from ingestion.errors import AllSourcesUnavailable, UnknownPlatformError, UpstreamUnavailable
from ingestion.registry import build_default_registry
from ingestion.service import ContestAggregator, summarize_errors

SOURCE_ERRORS_HEADER = "X-Source-Errors"

app = FastAPI(title="Contest Feed API", version="0.1.0", debug=settings.debug)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "PUT", "DELETE", "POST"],
    allow_headers=["Authorization", "Content-Type"],
    expose_headers=[SOURCE_ERRORS_HEADER],
)


@app.on_event("startup")
def on_startup() -> None:
    """Configure logging when the API boots."""

    configure_logging(settings.log_level)
    logger.info(
        "Contest feed starting (environment={}, feed_base_url={})",
        settings.environment,
        settings.feed_base_url,
    )


@lru_cache
def _solution_repository() -> SolutionRepository:
    """Process-wide solution store shared by every request."""

    return SolutionRepository()


def _contest_service(
    app_settings: Annotated[Settings, Depends(get_settings)],
    solutions: Annotated[SolutionRepository, Depends(_solution_repository)],
) -> ContestService:
    """Provide the contest service wired with the configured adapters."""

    aggregator = ContestAggregator(
        build_default_registry(app_settings),
        timeout=app_settings.adapter_timeout_seconds,
    )
    return ContestService(aggregator, solutions)


def _contest_query(
    *,
    platforms: Annotated[
        list[str] | None,
        Query(alias="platform", description="Restrict to these platforms (repeatable)"),
    ] = None,
    status_filter: Annotated[
        str | None,
        Query(alias="status", description="upcoming|past", pattern="^(upcoming|past)$"),
    ] = None,
    search: Annotated[str | None, Query(description="Case-insensitive name search")] = None,
    start_after: Annotated[
        datetime | None, Query(description="Only contests starting at or after this instant")
    ] = None,
    start_before: Annotated[
        datetime | None, Query(description="Only contests starting at or before this instant")
    ] = None,
) -> ContestQuery:
    """Normalize shared contest listing query parameters."""

    return ContestQuery(
        platforms=[name.lower() for name in platforms] if platforms else None,
        status=status_filter,
        search=search or None,
        start_after=start_after,
        start_before=start_before,
    )


def _all_sources_failed(exc: AllSourcesUnavailable) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=exc.to_dict(),
    )


def _reject_unknown_filters(query: ContestQuery, service: ContestService) -> None:
    unknown = service.unknown_platforms(query)
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": "UnknownPlatformError",
                "message": f"Unknown platform filter: {', '.join(unknown)}",
                "platforms": unknown,
            },
        )


def _log_source_errors(feed: ContestFeed) -> None:
    for platform, error in sorted(feed.source_errors.items()):
        logger.warning("Serving feed without {}: {}", platform, error)


@app.get("/healthz", tags=["system"])
def healthcheck() -> dict[str, str]:
    """Basic readiness probe consumed by infrastructure monitors."""

    return {"status": "ok"}


@app.get("/platforms", tags=["system"])
def list_platforms(service: ContestService = Depends(_contest_service)) -> list[str]:
    """Return the names of the registered contest platforms."""

    return list(service.platforms)


@app.get(
    "/config",
    response_model=schemas.FrontendConfig,
    response_model_by_alias=True,
    tags=["system"],
)
def frontend_config(
    app_settings: Annotated[Settings, Depends(get_settings)],
    service: ContestService = Depends(_contest_service),
):
    """Public configuration consumed by the browser front end."""

    return schemas.FrontendConfig(
        feed_base_url=str(app_settings.feed_base_url),
        platforms=list(service.platforms),
    )


@app.get(
    "/contests",
    response_model=list[schemas.Contest],
    response_model_exclude_none=True,
    tags=["contests"],
)
async def list_contests(
    *,
    response: Response,
    query: ContestQuery = Depends(_contest_query),
    service: ContestService = Depends(_contest_service),
):
    """Return the merged contest feed across every platform that answered."""

    _reject_unknown_filters(query, service)
    try:
        feed = await service.feed(query)
    except AllSourcesUnavailable as exc:
        raise _all_sources_failed(exc) from exc

    if feed.source_errors:
        _log_source_errors(feed)
        response.headers[SOURCE_ERRORS_HEADER] = ",".join(sorted(feed.source_errors))
    return [schemas.Contest.from_domain(contest) for contest in feed.contests]


@app.get(
    "/feed",
    response_model=schemas.ContestFeed,
    response_model_exclude_none=True,
    tags=["contests"],
)
async def contest_feed(
    *,
    query: ContestQuery = Depends(_contest_query),
    service: ContestService = Depends(_contest_service),
):
    """Return the merged feed together with per-platform failures."""

    _reject_unknown_filters(query, service)
    try:
        feed = await service.feed(query)
    except AllSourcesUnavailable as exc:
        raise _all_sources_failed(exc) from exc

    if feed.source_errors:
        _log_source_errors(feed)
    return schemas.ContestFeed(
        contests=[schemas.Contest.from_domain(contest) for contest in feed.contests],
        source_errors=summarize_errors(feed.source_errors),
    )


@app.get(
    "/contests/{platform}",
    response_model=list[schemas.Contest],
    response_model_exclude_none=True,
    tags=["contests"],
)
async def list_platform_contests(
    platform: str,
    *,
    query: ContestQuery = Depends(_contest_query),
    service: ContestService = Depends(_contest_service),
):
    """Return a single platform's contests."""

    try:
        contests = await service.platform_contests(platform, query)
    except UnknownPlatformError as exc:
        raise HTTPException(status_code=404, detail=exc.to_dict()) from exc
    except UpstreamUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.to_dict()) from exc
    return [schemas.Contest.from_domain(contest) for contest in contests]


@app.post("/admin/login", response_model=schemas.AdminLoginResult, tags=["admin"])
def admin_login(
    credentials: schemas.AdminLogin,
    app_settings: Annotated[Settings, Depends(get_settings)],
):
    """Compare the submitted pair against the shared admin secret."""

    if not app_settings.admin_enabled:
        raise HTTPException(status_code=503, detail="Admin credentials are not configured")
    if not credentials_match(app_settings, credentials.username, credentials.password):
        raise HTTPException(status_code=401, detail="Invalid admin credentials")
    return schemas.AdminLoginResult(authenticated=True)


@app.get("/solutions", response_model=list[schemas.Solution], tags=["admin"])
def list_solutions(
    _admin: Annotated[str, Depends(require_admin)],
    service: ContestService = Depends(_contest_service),
):
    """List every stored solution link."""

    return [schemas.Solution.model_validate(record) for record in service.solutions()]


@app.put(
    "/contests/{platform}/{contest_id}/solution",
    response_model=schemas.Solution,
    tags=["admin"],
)
def set_solution(
    platform: str,
    contest_id: str,
    update: schemas.SolutionUpdate,
    _admin: Annotated[str, Depends(require_admin)],
    service: ContestService = Depends(_contest_service),
):
    """Attach a solutions link to a contest; the last write wins."""

    try:
        record = service.set_solution(platform, contest_id, update.solution_url)
    except UnknownPlatformError as exc:
        raise HTTPException(status_code=404, detail=exc.to_dict()) from exc
    logger.info("Solution link for {}/{} set to {}", record.platform, contest_id, record.solution_url)
    return schemas.Solution.model_validate(record)


@app.delete(
    "/contests/{platform}/{contest_id}/solution",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["admin"],
)
def clear_solution(
    platform: str,
    contest_id: str,
    _admin: Annotated[str, Depends(require_admin)],
    service: ContestService = Depends(_contest_service),
) -> Response:
    """Remove a contest's solutions link."""

    try:
        removed = service.clear_solution(platform, contest_id)
    except UnknownPlatformError as exc:
        raise HTTPException(status_code=404, detail=exc.to_dict()) from exc
    if not removed:
        raise HTTPException(status_code=404, detail="No solution link stored for this contest")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
