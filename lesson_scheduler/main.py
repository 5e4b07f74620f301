import logging
import time

from fastapi import FastAPI, Request

from lesson_scheduler.config import settings
from lesson_scheduler.routers import schedule

logging.basicConfig(
    level=getattr(logging, (settings.log_level or 'INFO').upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
)


app = FastAPI(title=settings.app_name, version='0.1.0')


@app.middleware('http')
async def slow_request_logger(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000.0
    if duration_ms >= settings.metrics_slow_ms:
        logging.getLogger('lesson_scheduler.request').info(
            'request_slow path=%s method=%s status_code=%s duration_ms=%.2f',
            request.url.path,
            request.method,
            response.status_code,
            duration_ms,
        )
    return response


app.include_router(schedule.router)


@app.get('/')
def health():
    return {'app': settings.app_name, 'status': 'ok'}


@app.get('/health')
def healthcheck():
    return {'status': 'ok'}
