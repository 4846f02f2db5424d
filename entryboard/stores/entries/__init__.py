from .store import EntryStore

__all__ = ['EntryStore']
