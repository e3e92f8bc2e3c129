from fastapi import FastAPI, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import timedelta
import logging
import os
from pathlib import Path

from lifeos.database import engine, get_db, Base
from lifeos import models  # Import all models to register them with Base
from lifeos.schemas import (
    TaskCreate, TaskUpdate, TaskResponse, TaskOrderItem,
    DailyLogResponse, RoutineDayResponse,
    StreakSummaryResponse, StreakRefreshResponse,
    LedgerResponse,
    ExerciseLogCreate, BookLogCreate, LearningLogCreate, ActivityResponse,
    RestDayCreate, RestDayResponse,
    SettingsUpdate, SettingsResponse,
    NotificationSweepResponse
)
from lifeos.auth import verify_api_key
from lifeos.repositories.settings_repository import SettingsRepository
from lifeos.services.date_service import DateService
from lifeos.services.task_service import TaskService
from lifeos.services.daily_log_service import DailyLogService
from lifeos.services.routine_service import RoutineService
from lifeos.services.streak_service import StreakService
from lifeos.services.points_service import PointsService
from lifeos.services.activity_service import ActivityService
from lifeos.services.notification_service import NotificationService
from lifeos.services.scheduler_service import start_scheduler, stop_scheduler
from lifeos.exceptions import (
    ValidationException, TaskNotFoundException, RestDayNotFoundException, LogConflictException
)
from lifeos.constants import (
    DEFAULT_LOG_DIRECTORY_PROD, DEFAULT_LOG_DIRECTORY_DEV, DEFAULT_LEDGER_ID, CORS_ALLOWED_ORIGINS
)

LOG_DIR = os.getenv("LIFEOS_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("LIFEOS_LOG_FILE", "app.log")
SCHEDULER_ENABLED = os.getenv("LIFEOS_SCHEDULER_ENABLED", "true").lower() in ("1", "true", "yes")

# Create log directory if it doesn't exist (for development)
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()  # Also log to console
    ]
)

logger = logging.getLogger("lifeos")

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="LifeOS Routine API",
    description="Daily routines with recurrence, streaks and points per life domain",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

date_service = DateService()


def parse_day(value: Optional[str]):
    """Resolve an optional ?day= parameter, mapping bad input to 400"""
    try:
        return date_service.parse_optional_day(value)
    except ValidationException as e:
        raise HTTPException(status_code=400, detail=str(e))


# Startup event
@app.on_event("startup")
async def startup_event():
    logger.info(f"LifeOS API started. Timezone: {date_service.tz_name}. Logging to: {log_path}")
    if SCHEDULER_ENABLED:
        start_scheduler()


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down LifeOS API")
    stop_scheduler()


# Health check (no auth required)
@app.get("/")
async def root():
    return {"message": "LifeOS Routine API", "status": "active"}


# ===== ROUTINE ENDPOINTS =====

@app.get("/api/routine", response_model=RoutineDayResponse, dependencies=[Depends(verify_api_key)])
async def get_routine_endpoint(day: Optional[str] = None, db: Session = Depends(get_db)):
    """Get the routine for a day (format: YYYY-MM-DD, default today)"""
    target = parse_day(day)
    return RoutineService(db, date_service).get_routine_for_day(target)


def _log_action(db: Session, task_id: int, day: Optional[str], action: str):
    target = parse_day(day)
    service = DailyLogService(db, DEFAULT_LEDGER_ID, date_service)
    try:
        return getattr(service, action)(task_id, target)
    except TaskNotFoundException:
        raise HTTPException(status_code=404, detail="Task not found")
    except ValidationException as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LogConflictException as e:
        logger.warning(f"Unresolved log conflict: {e}")
        raise HTTPException(status_code=409, detail=str(e))


@app.post("/api/routine/{task_id}/complete", response_model=DailyLogResponse, dependencies=[Depends(verify_api_key)])
async def complete_task_endpoint(task_id: int, day: Optional[str] = None, db: Session = Depends(get_db)):
    """Mark a task completed for a day"""
    return _log_action(db, task_id, day, "complete")


@app.post("/api/routine/{task_id}/uncomplete", response_model=DailyLogResponse, dependencies=[Depends(verify_api_key)])
async def uncomplete_task_endpoint(task_id: int, day: Optional[str] = None, db: Session = Depends(get_db)):
    """Revert a completed task to pending"""
    return _log_action(db, task_id, day, "uncomplete")


@app.post("/api/routine/{task_id}/skip", response_model=DailyLogResponse, dependencies=[Depends(verify_api_key)])
async def skip_task_endpoint(task_id: int, day: Optional[str] = None, db: Session = Depends(get_db)):
    """Mark a task skipped for a day"""
    return _log_action(db, task_id, day, "skip")


@app.post("/api/routine/{task_id}/unskip", response_model=DailyLogResponse, dependencies=[Depends(verify_api_key)])
async def unskip_task_endpoint(task_id: int, day: Optional[str] = None, db: Session = Depends(get_db)):
    """Revert a skipped task to pending"""
    return _log_action(db, task_id, day, "unskip")


@app.get("/api/routine/{task_id}/log", response_model=DailyLogResponse, dependencies=[Depends(verify_api_key)])
async def get_task_log_endpoint(task_id: int, day: Optional[str] = None, db: Session = Depends(get_db)):
    """Get a task's log for a day; pending when nothing was recorded"""
    target = parse_day(day)
    if not TaskService(db).get_task(task_id):
        raise HTTPException(status_code=404, detail="Task not found")
    return DailyLogService(db, DEFAULT_LEDGER_ID, date_service).get_log_view(task_id, target)


# ===== TASK ENDPOINTS =====

@app.get("/api/tasks", response_model=List[TaskResponse], dependencies=[Depends(verify_api_key)])
async def get_tasks_endpoint(db: Session = Depends(get_db)):
    """Get all active tasks in display order"""
    return TaskService(db).get_tasks()


@app.post("/api/tasks", response_model=TaskResponse, dependencies=[Depends(verify_api_key)])
async def create_task_endpoint(task: TaskCreate, db: Session = Depends(get_db)):
    """Create a new routine task"""
    try:
        return TaskService(db).create_task(task)
    except ValidationException as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/api/tasks/bulk", response_model=List[TaskResponse], dependencies=[Depends(verify_api_key)])
async def bulk_create_tasks_endpoint(tasks: List[TaskCreate], db: Session = Depends(get_db)):
    """Create several routine tasks at once"""
    try:
        return TaskService(db).bulk_create_tasks(tasks)
    except ValidationException as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.put("/api/tasks/order", response_model=List[TaskResponse], dependencies=[Depends(verify_api_key)])
async def reorder_tasks_endpoint(items: List[TaskOrderItem], db: Session = Depends(get_db)):
    """Set display positions of tasks"""
    return TaskService(db).reorder_tasks(items)


@app.get("/api/tasks/{task_id}", response_model=TaskResponse, dependencies=[Depends(verify_api_key)])
async def get_task_endpoint(task_id: int, db: Session = Depends(get_db)):
    task = TaskService(db).get_task(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@app.put("/api/tasks/{task_id}", response_model=TaskResponse, dependencies=[Depends(verify_api_key)])
async def update_task_endpoint(task_id: int, task_update: TaskUpdate, db: Session = Depends(get_db)):
    """Update a routine task"""
    try:
        task = TaskService(db).update_task(task_id, task_update)
    except ValidationException as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@app.delete("/api/tasks/{task_id}", dependencies=[Depends(verify_api_key)])
async def delete_task_endpoint(task_id: int, db: Session = Depends(get_db)):
    """Deactivate a routine task"""
    if not TaskService(db).delete_task(task_id):
        raise HTTPException(status_code=404, detail="Task not found")
    return {"message": "Task deactivated"}


# ===== STREAK ENDPOINTS =====

@app.get("/api/streak", response_model=StreakSummaryResponse, dependencies=[Depends(verify_api_key)])
async def get_streak_endpoint(db: Session = Depends(get_db)):
    """Get current streak, today's status and milestone progress"""
    return StreakService(db, DEFAULT_LEDGER_ID, date_service).get_streak_summary()


@app.post("/api/streak/{day}/refresh", response_model=StreakRefreshResponse, dependencies=[Depends(verify_api_key)])
async def refresh_streak_endpoint(day: str, db: Session = Depends(get_db)):
    """Re-evaluate a day's streak record (format: YYYY-MM-DD)"""
    target = parse_day(day)
    return StreakService(db, DEFAULT_LEDGER_ID, date_service).refresh_day(target)


# ===== POINTS ENDPOINTS =====

@app.get("/api/points", response_model=LedgerResponse, dependencies=[Depends(verify_api_key)])
async def get_points_endpoint(db: Session = Depends(get_db)):
    """Get total points and the per-domain breakdown"""
    return PointsService(db).get_ledger(DEFAULT_LEDGER_ID)


# ===== ACTIVITY ENDPOINTS =====

@app.post("/api/activities/exercise", response_model=ActivityResponse, dependencies=[Depends(verify_api_key)])
async def log_exercise_endpoint(data: ExerciseLogCreate, db: Session = Depends(get_db)):
    try:
        return ActivityService(db, DEFAULT_LEDGER_ID, date_service).log_exercise(data)
    except ValidationException as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/api/activities/reading", response_model=ActivityResponse, dependencies=[Depends(verify_api_key)])
async def log_reading_endpoint(data: BookLogCreate, db: Session = Depends(get_db)):
    try:
        return ActivityService(db, DEFAULT_LEDGER_ID, date_service).log_reading(data)
    except ValidationException as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/api/activities/learning", response_model=ActivityResponse, dependencies=[Depends(verify_api_key)])
async def log_learning_endpoint(data: LearningLogCreate, db: Session = Depends(get_db)):
    try:
        return ActivityService(db, DEFAULT_LEDGER_ID, date_service).log_learning(data)
    except ValidationException as e:
        raise HTTPException(status_code=400, detail=str(e))


# ===== REST DAYS ENDPOINTS =====

@app.get("/api/rest-days", response_model=List[RestDayResponse], dependencies=[Depends(verify_api_key)])
async def get_rest_days_endpoint(db: Session = Depends(get_db)):
    """Get all declared rest days"""
    return ActivityService(db, DEFAULT_LEDGER_ID, date_service).get_rest_days()


@app.post("/api/rest-days", response_model=RestDayResponse, dependencies=[Depends(verify_api_key)])
async def create_rest_day_endpoint(rest_day: RestDayCreate, db: Session = Depends(get_db)):
    """Declare a rest day"""
    try:
        return ActivityService(db, DEFAULT_LEDGER_ID, date_service).create_rest_day(rest_day)
    except ValidationException as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.delete("/api/rest-days/{rest_day_id}", dependencies=[Depends(verify_api_key)])
async def delete_rest_day_endpoint(rest_day_id: int, db: Session = Depends(get_db)):
    """Remove a declared rest day"""
    try:
        ActivityService(db, DEFAULT_LEDGER_ID, date_service).delete_rest_day(rest_day_id)
    except RestDayNotFoundException:
        raise HTTPException(status_code=404, detail="Rest day not found")
    return {"message": "Rest day deleted"}


# ===== SETTINGS ENDPOINTS =====

def _settings_response(settings) -> SettingsResponse:
    response = SettingsResponse.model_validate(settings)
    response.today = date_service.today()
    response.timezone = date_service.tz_name
    return response


@app.get("/api/settings", response_model=SettingsResponse, dependencies=[Depends(verify_api_key)])
async def get_settings_endpoint(db: Session = Depends(get_db)):
    """Get settings with today's calendar day"""
    settings = SettingsRepository.get(db)
    db.commit()
    return _settings_response(settings)


@app.put("/api/settings", response_model=SettingsResponse, dependencies=[Depends(verify_api_key)])
async def update_settings_endpoint(settings_update: SettingsUpdate, db: Session = Depends(get_db)):
    """Update settings and re-evaluate recent streak days under the new rules"""
    settings = SettingsRepository.get(db)
    settings = SettingsRepository.update(db, settings, settings_update.model_dump(exclude_unset=True))
    streak_service = StreakService(db, DEFAULT_LEDGER_ID, date_service)
    today = date_service.today()
    yesterday = today - timedelta(days=1)
    if streak_service.streak_repo.get_by_date(db, yesterday) is not None:
        streak_service.refresh_day(yesterday, commit=False)
    streak_service.refresh_day(today)
    return _settings_response(settings)


# ===== NOTIFICATION ENDPOINTS =====

@app.post("/api/notifications/check", response_model=NotificationSweepResponse, dependencies=[Depends(verify_api_key)])
async def check_notifications_endpoint(db: Session = Depends(get_db)):
    """Run a reminder sweep for the current time slot"""
    return NotificationService(db, date_service=date_service).run_sweep()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("lifeos.main:app", host="0.0.0.0", port=8000, reload=False)
