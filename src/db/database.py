"""Generate database sessions"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.core.config import Config
from src.db.schema import Base

DATABASE_URL = Config.DATABASE_URL
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine)

# Ensure all tables are created
Base.metadata.create_all(bind=engine)
