from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from ..core.config import settings

engine = create_engine(f"sqlite:///{settings.DB_PATH}", future=True,
                       connect_args={"check_same_thread": False})
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

class Base(DeclarativeBase):
    pass

@event.listens_for(engine, "connect")
def _sqlite_foreign_keys(dbapi_conn, connection_record):
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()

def init_db(bind=None):
    from .schemas import Map, Location
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    # pragma tuning
    with bind.connect() as conn:
        conn.execute(text("PRAGMA journal_mode=WAL;"))
        conn.execute(text("PRAGMA synchronous=NORMAL;"))

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
