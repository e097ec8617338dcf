import logging
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from sqlalchemy.orm import Session, sessionmaker

from budget_sync import sync_all_budgets, sync_budget_spent_for_month
from dashboard import DashboardData, DashboardService
from database import SessionLocal
from months import parse_month_key
from scheduler import SchedulerManager

logger = logging.getLogger(__name__)


def _load_app_version() -> str:
    try:
        import tomllib
    except Exception:
        return "unknown"
    try:
        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "unknown"))
    except Exception:
        return "unknown"


APP_VERSION = _load_app_version()

app = FastAPI(title="Budget Dashboard", version=APP_VERSION)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker[Session]:
    return SessionLocal


scheduler_manager = SchedulerManager()


@app.on_event("startup")
def startup_event():
    scheduler_manager.start()


@app.on_event("shutdown")
def shutdown_event():
    scheduler_manager.stop()


def month_from_request(request: Request) -> Optional[date]:
    raw = request.query_params.get("month")
    if not raw:
        return None
    try:
        return parse_month_key(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _build(session_factory: sessionmaker[Session], as_of: Optional[date]) -> DashboardData:
    service = DashboardService(session_factory)
    data = service.build(as_of=as_of)
    logger.info(
        f"dashboard_served: month={data.category_plan_actual.month_key} "
        f"anomalies={len(data.anomalies)}"
    )
    return data


@app.get("/api/dashboard")
def api_dashboard(
    request: Request,
    session_factory: sessionmaker[Session] = Depends(get_session_factory),
):
    return _build(session_factory, month_from_request(request))


@app.get("/api/months/{month_key}/dashboard")
def api_month_dashboard(
    month_key: str,
    session_factory: sessionmaker[Session] = Depends(get_session_factory),
):
    try:
        as_of = parse_month_key(month_key)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _build(session_factory, as_of)


@app.post("/admin/sync-spent")
def admin_sync_spent(request: Request, db: Session = Depends(get_db)):
    month = month_from_request(request)
    if month is None:
        updated = sync_all_budgets(db)
    else:
        updated = sync_budget_spent_for_month(db, month)
        db.commit()
    return {"allocations_updated": updated}


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
