from typing import Generic, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Session

from certichain.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchema = TypeVar("CreateSchema", bound=BaseModel)


class CRUDBase(Generic[ModelType, CreateSchema]):
    def __init__(self, model: Type[ModelType]): self.model = model

    def create(self, db: Session, obj_in: CreateSchema) -> ModelType:
        obj = self.model(**obj_in.model_dump())
        db.add(obj); db.commit(); db.refresh(obj)
        return obj
