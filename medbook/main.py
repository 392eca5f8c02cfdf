import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from medbook.core import config
from medbook.database import Base, engine, ensure_appointment_schema
from medbook.models import appointment, doctor, patient  # noqa: F401
from medbook.routes import appointment_routes, doctor_routes
from medbook.scheduling import tasks

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI(title='Medbook Appointments API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.on_event('startup')
def start_background_jobs() -> None:
    tasks.start_scheduler()


@app.on_event('shutdown')
def stop_background_jobs() -> None:
    tasks.shutdown_scheduler()


@app.get('/')
def root():
    return {'status': 'Medbook Appointments API Running'}


app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(doctor_routes.router, prefix='/doctors')
