from .identity import IdentityResolver
from .store import UserStore

__all__ = ['IdentityResolver', 'UserStore']
