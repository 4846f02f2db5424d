from .base import BaseStore, CollectionCache, KeyedLock
from .saga import OperationLog, Saga

__all__ = ['BaseStore', 'CollectionCache', 'KeyedLock', 'OperationLog', 'Saga']
