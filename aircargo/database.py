import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from aircargo.config import build_database_url

logger = logging.getLogger(__name__)

# Declarative base para los modelos
Base = declarative_base()


def make_engine(url: str):
    """
    Create an engine for `url`.

    SQLite connections get foreign keys switched on (timeline events cascade
    with their booking) and every transaction is opened with BEGIN IMMEDIATE,
    so concurrent writers queue on the busy timeout instead of failing when a
    read lock is upgraded.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(
        url,
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        # pysqlite must not emit its own BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


# Crear el engine de SQLAlchemy con la URL de la base de datos
engine = make_engine(build_database_url())

# Configuración de la sesión para interactuar con la base de datos
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(bind=None):
    # Registra tots els models a Base.metadata abans de crear les taules
    from aircargo.models import airline, booking, flight, user  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ready")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
