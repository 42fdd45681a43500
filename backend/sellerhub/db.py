from sqlmodel import SQLModel, create_engine, Session
from sellerhub.config import get_settings

DATABASE_URL = get_settings().database_url

# Dialects offering INSERT ... ON CONFLICT DO UPDATE
UPSERT_DIALECTS = ("postgresql", "sqlite")

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=False, connect_args=connect_args)

def check_upsert_support(bind):
    dialect = bind.dialect.name
    if dialect not in UPSERT_DIALECTS:
        raise RuntimeError(f"Database dialect '{dialect}' has no atomic upsert; use PostgreSQL or SQLite")

def dialect_insert(session: Session):
    """The `insert` construct of the session's dialect, which carries `on_conflict_do_update`."""
    bind = session.get_bind()
    check_upsert_support(bind)
    if bind.dialect.name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    else:
        from sqlalchemy.dialects.sqlite import insert
    return insert

def create_db_and_tables(bind=None):
    # Import table models so they register on SQLModel.metadata
    from sellerhub.models import meli_oauth_db  # noqa: F401
    bind = bind or engine
    check_upsert_support(bind)
    SQLModel.metadata.create_all(bind)

def get_session():
    with Session(engine) as session:
        yield session
