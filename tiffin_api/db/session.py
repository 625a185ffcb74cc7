from sqlmodel import SQLModel, create_engine, Session
from tiffin_api.core.config import settings

def build_engine(database_url: str, **kwargs):
    # check_same_thread is needed for SQLite, remove for PostgreSQL
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args, **kwargs)

engine = build_engine(settings.DATABASE_URL)

def get_session():
    with Session(engine) as session:
        yield session

def create_db_and_tables(bind=None):
    # Importing the package registers every table with SQLModel metadata
    import tiffin_api.models  # noqa: F401
    SQLModel.metadata.create_all(bind or engine)
