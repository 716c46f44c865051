"""REST API for the cricket auction service."""

from __future__ import annotations

import logging
import secrets
import sqlite3
from dataclasses import asdict
from typing import Any, Iterable

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from cricauction import __version__
from cricauction.api.schemas import (
    AuctionCreate,
    AuctionLogCreate,
    AuctionUpdate,
    DashboardStatsResponse,
    DeleteResponse,
    ImportReportResponse,
    ImportRowResponse,
    LoginRequest,
    LoginResponse,
    PlayerCreate,
    PlayerUpdate,
    PoolSummaryResponse,
    SaleRequest,
    SaleResponse,
    TeamCreate,
    TeamUpdate,
    UnsoldResponse,
)
from cricauction.config import AuctionSettings, load_settings
from cricauction.ingest import ImportReport, PlayerCsvError, parse_players_csv
from cricauction.ledger import summarize_dashboard
from cricauction.models import Auction, AuctionLog, Player, Team
from cricauction.persistence import AuctionRuleError, AuctionStore, RecordNotFoundError
from cricauction.pool import export_results_to_csv, summarize_pools


logger = logging.getLogger("uvicorn.error")

RESULTS_FILENAME = "auction-results.csv"


def _format_errors(errors: Iterable[dict[str, Any]]) -> str:
    parts = []
    for error in errors:
        loc = [str(item) for item in error.get("loc", ()) if item != "body"]
        message = error.get("msg", "Invalid value")
        parts.append(f"{'.'.join(loc)}: {message}" if loc else message)
    return "; ".join(parts) or "Invalid request"


def _report_to_response(report: ImportReport, created: int) -> ImportReportResponse:
    return ImportReportResponse(
        total_rows=len(report.rows) + len(report.rejected_lines),
        valid=report.valid,
        warnings=report.warnings,
        errors=report.errors,
        created=created,
        rejected_lines=list(report.rejected_lines),
        rows=[ImportRowResponse(**asdict(row)) for row in report.rows],
    )


def create_app(store: AuctionStore | None = None, settings: AuctionSettings | None = None) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(title="cricauction", version=__version__)
    store = store or AuctionStore(settings.db_path)
    app.state.store = store
    app.state.settings = settings

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": _format_errors(exc.errors())})

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": _format_errors(exc.errors())})

    @app.exception_handler(RecordNotFoundError)
    async def not_found_handler(request: Request, exc: RecordNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(AuctionRuleError)
    async def rule_handler(request: Request, exc: AuctionRuleError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(sqlite3.Error)
    async def storage_handler(request: Request, exc: sqlite3.Error) -> JSONResponse:
        logger.exception("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def unexpected_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": str(exc) or exc.__class__.__name__})

    def _player_or_404(player_id: str) -> Player:
        player = store.get_player(player_id)
        if player is None:
            raise HTTPException(status_code=404, detail=f"Player {player_id} not found")
        return player

    def _team_or_404(team_id: str) -> Team:
        team = store.get_team(team_id)
        if team is None:
            raise HTTPException(status_code=404, detail=f"Team {team_id} not found")
        return team

    def _auction_or_404(auction_id: str) -> Auction:
        auction = store.get_auction(auction_id)
        if auction is None:
            raise HTTPException(status_code=404, detail=f"Auction {auction_id} not found")
        return auction

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    # Players

    @app.get("/api/players", response_model=list[Player])
    async def list_players() -> list[Player]:
        return store.list_players()

    @app.post("/api/players", response_model=Player, status_code=201)
    async def create_player(payload: PlayerCreate) -> Player:
        return store.create_player(**payload.model_dump())

    @app.post("/api/players/import", response_model=ImportReportResponse)
    async def import_players(
        file: UploadFile = File(...),
        commit: bool = Form(False),
    ) -> ImportReportResponse:
        raw = await file.read()
        if not raw:
            raise HTTPException(status_code=400, detail="Uploaded file is empty")
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise HTTPException(status_code=400, detail="Uploaded file is not UTF-8 text") from exc

        existing = [player.name for player in store.list_players()]
        try:
            report = parse_players_csv(text, existing_names=existing)
        except PlayerCsvError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        created = 0
        if commit and report.importable:
            created = len(store.create_players(row.to_player_fields() for row in report.importable))
            logger.info("Imported %d player(s) from %s", created, file.filename or "upload")
        return _report_to_response(report, created)

    @app.get("/api/players/{player_id}", response_model=Player)
    async def get_player(player_id: str) -> Player:
        return _player_or_404(player_id)

    @app.put("/api/players/{player_id}", response_model=Player)
    async def update_player(player_id: str, payload: PlayerUpdate) -> Player:
        return store.update_player(player_id, payload.changes())

    @app.delete("/api/players/{player_id}", response_model=DeleteResponse)
    async def delete_player(player_id: str) -> DeleteResponse:
        return DeleteResponse(success=store.delete_player(player_id))

    # Teams

    @app.get("/api/teams", response_model=list[Team])
    async def list_teams() -> list[Team]:
        return store.list_teams()

    @app.post("/api/teams", response_model=Team, status_code=201)
    async def create_team(payload: TeamCreate) -> Team:
        return store.create_team(
            name=payload.name,
            budget=payload.budget if payload.budget is not None else settings.default_team_budget,
            color_theme=payload.color_theme,
            logo_url=payload.logo_url,
        )

    @app.get("/api/teams/{team_id}", response_model=Team)
    async def get_team(team_id: str) -> Team:
        return _team_or_404(team_id)

    @app.put("/api/teams/{team_id}", response_model=Team)
    async def update_team(team_id: str, payload: TeamUpdate) -> Team:
        return store.update_team(team_id, payload.changes())

    @app.delete("/api/teams/{team_id}", response_model=DeleteResponse)
    async def delete_team(team_id: str) -> DeleteResponse:
        return DeleteResponse(success=store.delete_team(team_id))

    # Auctions

    @app.get("/api/auctions", response_model=list[Auction])
    async def list_auctions() -> list[Auction]:
        return store.list_auctions()

    @app.post("/api/auctions", response_model=Auction, status_code=201)
    async def create_auction(payload: AuctionCreate) -> Auction:
        return store.create_auction(
            player_id=payload.player_id,
            current_bid=payload.current_bid,
            winning_team=payload.winning_team,
        )

    @app.get("/api/auctions/active", response_model=list[Auction])
    async def list_active_auctions() -> list[Auction]:
        return store.list_active_auctions()

    @app.get("/api/auctions/{auction_id}", response_model=Auction)
    async def get_auction(auction_id: str) -> Auction:
        return _auction_or_404(auction_id)

    @app.put("/api/auctions/{auction_id}", response_model=Auction)
    async def update_auction(auction_id: str, payload: AuctionUpdate) -> Auction:
        return store.update_auction(auction_id, payload.changes())

    @app.delete("/api/auctions/{auction_id}", response_model=DeleteResponse)
    async def delete_auction(auction_id: str) -> DeleteResponse:
        return DeleteResponse(success=store.delete_auction(auction_id))

    @app.post("/api/auctions/{auction_id}/sell", response_model=SaleResponse)
    async def sell_auction(auction_id: str, payload: SaleRequest) -> SaleResponse:
        result = store.sell_auction(auction_id, team_id=payload.team_id, price=payload.price)
        return SaleResponse(auction=result.auction, player=result.player, team=result.team, log=result.log)

    @app.post("/api/auctions/{auction_id}/unsold", response_model=UnsoldResponse)
    async def mark_unsold(auction_id: str) -> UnsoldResponse:
        auction, player = store.mark_unsold(auction_id)
        return UnsoldResponse(auction=auction, player=player)

    # Auction logs

    @app.get("/api/auction-logs", response_model=list[AuctionLog])
    async def list_auction_logs() -> list[AuctionLog]:
        return store.list_auction_logs()

    @app.post("/api/auction-logs", response_model=AuctionLog, status_code=201)
    async def create_auction_log(payload: AuctionLogCreate) -> AuctionLog:
        return store.create_auction_log(
            player_id=payload.player_id,
            team_id=payload.team_id,
            sold_price=payload.sold_price,
        )

    # Pools, dashboard, export

    @app.get("/api/pools", response_model=list[PoolSummaryResponse])
    async def list_pools() -> list[PoolSummaryResponse]:
        return [PoolSummaryResponse(**asdict(summary)) for summary in summarize_pools(store.list_players())]

    @app.get("/api/pools/{pool_name}/players", response_model=list[Player])
    async def list_pool_players(pool_name: str) -> list[Player]:
        return store.list_players_by_pool(pool_name)

    @app.get("/api/dashboard/stats", response_model=DashboardStatsResponse)
    async def dashboard_stats() -> DashboardStatsResponse:
        stats = summarize_dashboard(store.list_players(), store.list_teams(), store.list_auctions())
        return DashboardStatsResponse(**asdict(stats))

    @app.get("/api/export/results")
    async def export_results() -> Response:
        csv_text = export_results_to_csv(store.list_players(), store.list_teams())
        return Response(
            content=csv_text,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{RESULTS_FILENAME}"'},
        )

    # Auth

    @app.post("/api/auth/login", response_model=LoginResponse)
    async def login(payload: LoginRequest) -> LoginResponse:
        username_ok = secrets.compare_digest(payload.username.encode(), settings.admin_username.encode())
        password_ok = secrets.compare_digest(payload.password.encode(), settings.admin_password.encode())
        if not (username_ok and password_ok):
            logger.warning("Rejected admin login for %s", payload.username)
            raise HTTPException(status_code=401, detail="Invalid credentials")
        return LoginResponse(username=settings.admin_username)

    return app


__all__ = ["create_app"]
