""
"Persistence helpers for PolyNodes graphs."
""

from .serializer import GraphSerializer

__all__ = ["GraphSerializer"]
