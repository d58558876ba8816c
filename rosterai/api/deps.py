from typing import Generator
from fastapi import Depends
from sqlalchemy.orm import Session

from rosterai.db.database import SessionLocal
from rosterai.services.scheduling.optimizer import BaseOptimizer, get_optimizer
from rosterai.services.scheduling.store import DataStore, SqlAlchemyDataStore


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_data_store(db: Session = Depends(get_db)) -> DataStore:
    return SqlAlchemyDataStore(db)


def get_schedule_optimizer() -> BaseOptimizer:
    """Optimizer chosen by OPTIMIZER_BACKEND; overridden in tests"""
    return get_optimizer()
