"""
Ingestion Service

Ölçümleri HTTP üzerinden kabul eder, store'a ekler ve Socket.IO ile
dinleyen reader'lara yayınlar. İsteğe bağlı alert değerlendirmesi sunar.
"""
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import socketio
from fastapi import FastAPI, HTTPException, Query

from services.ingestion.app.schemas import AlertOut, PatientList, RecordCreate, RecordOut
from shared import config
from shared.alert_service import AlertEvaluationService, current_time_ms
from shared.errors import InvalidInput, StorageUnavailable
from shared.record_store import DataStorage

logger = logging.getLogger(__name__)

storage = DataStorage()
alert_service = AlertEvaluationService(storage)

sio = socketio.AsyncServer(
    async_mode='asgi',
    cors_allowed_origins='*',
    ping_timeout=60,
    ping_interval=25
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Ingestion Service: %d patients in store", len(storage.get_patient_ids()))
    yield
    logger.info("Ingestion Service: shutting down")


app = FastAPI(lifespan=lifespan)

# Socket.IO - Wrap FastAPI app
socket_app = socketio.ASGIApp(sio, app)


@sio.event
async def connect(sid, environ):
    logger.info("Client connected: %s", sid)


@sio.event
async def disconnect(sid, *args):
    logger.info("Client disconnected: %s", sid)


@app.get("/")
async def root():
    return {"message": "Ingestion Service is Running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.post("/api/v1/records")
async def ingest_record(data: RecordCreate):
    try:
        record = storage.add_patient_data(data.patient_id, data.value, data.record_type, data.timestamp)
    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StorageUnavailable as e:
        logger.error("Storage error: %s", e)
        raise HTTPException(status_code=503, detail="Service Unavailable (Storage)")

    await sio.emit('record', record.to_message())
    return {"success": True, "message": "Record stored", "record": record.model_dump(mode="json")}


@app.get("/api/v1/patients", response_model=PatientList)
async def list_patients():
    return {"patients": storage.get_patient_ids()}


@app.get("/api/v1/patients/{patient_id}/records", response_model=List[RecordOut])
async def get_records(
    patient_id: int,
    start_time: int = Query(default=0, ge=0),
    end_time: Optional[int] = Query(default=None, ge=0),
):
    """Kayıtları [start_time, end_time) aralığında, zamana göre artan sırada döner."""
    if end_time is None:
        end_time = current_time_ms() + 1
    try:
        records = storage.get_records(patient_id, start_time, end_time)
    except StorageUnavailable as e:
        logger.error("Storage error: %s", e)
        raise HTTPException(status_code=503, detail="Service Unavailable (Storage)")

    return [r.model_dump(mode="json") for r in sorted(records, key=lambda r: r.timestamp)]


@app.get("/api/v1/patients/{patient_id}/alerts", response_model=List[AlertOut])
async def evaluate_patient(patient_id: int):
    try:
        alerts = alert_service.evaluate(patient_id)
    except InvalidInput as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StorageUnavailable as e:
        logger.error("Storage error: %s", e)
        raise HTTPException(status_code=503, detail="Service Unavailable (Storage)")

    payload = [a.model_dump(mode="json") for a in alerts]
    for alert_data in payload:
        await sio.emit('alert', alert_data)
    return payload


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=config.LOG_LEVEL)
    uvicorn.run(socket_app, host="0.0.0.0", port=8001)
