from .index_service import IndexService

__all__ = ["IndexService"]
