import os
from dotenv import load_dotenv
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker


load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL")

engine = create_engine(DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduling_schema_checked = False

# Uniqueness guarantees the booking core relies on. Older databases created before
# these constraints existed get them added here.
SCHEDULING_INDEXES = [
    (
        'faculty_slots',
        'faculty_slots_owner_interval_unique',
        'CREATE UNIQUE INDEX IF NOT EXISTS faculty_slots_owner_interval_unique '
        'ON faculty_slots(owner_id, date, start_time, end_time)',
    ),
    (
        'appointments',
        'appointments_slot_id_unique_not_null',
        'CREATE UNIQUE INDEX IF NOT EXISTS appointments_slot_id_unique_not_null '
        'ON appointments(slot_id) WHERE slot_id IS NOT NULL',
    ),
    (
        'faculty_slots',
        'idx_faculty_slots_status_date',
        'CREATE INDEX IF NOT EXISTS idx_faculty_slots_status_date '
        'ON faculty_slots(status, date, start_time)',
    ),
]


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_scheduling_schema(bind=None) -> None:
    global _scheduling_schema_checked

    if _scheduling_schema_checked and bind is None:
        return

    with _schema_lock:
        if _scheduling_schema_checked and bind is None:
            return

        target = bind if bind is not None else engine
        inspector = inspect(target)
        table_names = set(inspector.get_table_names())

        with target.begin() as connection:
            for table_name, _index_name, statement in SCHEDULING_INDEXES:
                if table_name in table_names:
                    connection.execute(text(statement))

        if bind is None:
            _scheduling_schema_checked = True
