from .videos import router

__all__ = ["router"]
