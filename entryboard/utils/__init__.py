from .datetime_utils import DateTimeUtils

__all__ = ['DateTimeUtils']
