from .base import BaseWhere
from .elasticsearch import ElasticsearchWhereCompiler, elasticsearch_where
from .mongo import MongoWhereCompiler, mongo_where
from .postgres import PostgresWhereCompiler, postgres_where

__all__ = (
    "BaseWhere",
    "ElasticsearchWhereCompiler",
    "elasticsearch_where",
    "MongoWhereCompiler",
    "mongo_where",
    "PostgresWhereCompiler",
    "postgres_where",
)
