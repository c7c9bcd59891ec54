"""Модель key-value хранилища на устройстве"""
from sqlalchemy import Text
from sqlmodel import SQLModel, Field, Column


class StorageItem(SQLModel, table=True):
    """Одна запись key-value хранилища. PK: key"""
    __tablename__ = "storage_items"

    key: str = Field(primary_key=True, description="Storage key, e.g. '@bmi_history_v2'")
    value: str = Field(sa_column=Column(Text, nullable=False), description="Serialized payload")
