# clinic_slots/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from clinic_slots.core.config import LOG_LEVEL
from clinic_slots.db.base import init_db
from clinic_slots.scheduling.errors import SchedulingError
from clinic_slots.api.routes import schedules as schedules_router
from clinic_slots.api.routes import slot_configurations as slot_configurations_router
from clinic_slots.api.routes import slots as slots_router
from clinic_slots.api.routes import blocks as blocks_router
from clinic_slots.api.routes import leaves as leaves_router
from clinic_slots.api.routes import appointments as appointments_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(title="Clinic Slot Scheduling API")


@app.on_event("startup")
def startup():
    init_db()


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    logger.warning("%s %s refused: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "error": exc.code})


@app.get("/")
def root():
    return {"message": "Clinic Slot Scheduling API running"}


app.include_router(schedules_router.router)
app.include_router(slot_configurations_router.router)
app.include_router(slots_router.router)
app.include_router(blocks_router.router)
app.include_router(leaves_router.router)
app.include_router(appointments_router.router)
