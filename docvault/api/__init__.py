from docvault.api.router import router

__all__ = ["router"]
