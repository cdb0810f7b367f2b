from typing import Optional, List, Iterable
from sqlalchemy.orm import Session
from sqlalchemy import select
from .models import Worker, WorkerStatus

def get_worker(db: Session, worker_id: int) -> Optional[Worker]:
    return db.get(Worker, worker_id)

def get_worker_for_business(db: Session, worker_id: int, business_id: int) -> Optional[Worker]:
    statement = select(Worker).where(Worker.id == worker_id, Worker.business_id == business_id)
    return db.scalars(statement).first()

def get_workers(
    db: Session,
    *,
    business_id: int,
    status: Optional[WorkerStatus] = None,
    worker_ids: Optional[Iterable[int]] = None,
) -> List[Worker]:
    statement = select(Worker).where(Worker.business_id == business_id)
    if status is not None:
        statement = statement.where(Worker.status == status)
    if worker_ids is not None:
        statement = statement.where(Worker.id.in_(list(worker_ids)))
    statement = statement.order_by(Worker.id.asc())
    return list(db.scalars(statement))
