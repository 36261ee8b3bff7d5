import datetime

import sqlmodel

from app.core.enums import StateKind
from app.utils.misc import get_utc_now

from ._base import BaseModel


class EngineState(BaseModel, table=True):
    """One persisted draw-engine record of a user."""

    __tablename__: str = "engine_states"

    user_id: int = sqlmodel.Field(primary_key=True, sa_type=sqlmodel.BigInteger)
    kind: StateKind = sqlmodel.Field(primary_key=True)
    payload: dict = sqlmodel.Field(sa_column=sqlmodel.Column(sqlmodel.JSON, nullable=False))
    """JSON document of the matching state schema"""
    updated_at: datetime.datetime = sqlmodel.Field(
        default_factory=get_utc_now, sa_type=sqlmodel.DateTime(timezone=True)
    )
