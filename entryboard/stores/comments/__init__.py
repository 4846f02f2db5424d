from .store import CommentStore

__all__ = ['CommentStore']
