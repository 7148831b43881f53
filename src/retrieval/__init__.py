from .disclaimers import DisclaimerCatalog, DisclaimerPolicy
from .errors import BudgetError, LoadError, NotReadyError, RetrievalError
from .index import RetrievalIndex
from .loader import load_knowledge_pack, resolve_knowledge_file
from .models import DisclaimerEntry, FactsPack, KnowledgeFact, LoadResult
from .service import RetrievalService

__all__ = [
    "RetrievalService",
    "RetrievalIndex",
    "DisclaimerCatalog",
    "DisclaimerPolicy",
    "KnowledgeFact",
    "DisclaimerEntry",
    "FactsPack",
    "LoadResult",
    "load_knowledge_pack",
    "resolve_knowledge_file",
    "RetrievalError",
    "LoadError",
    "NotReadyError",
    "BudgetError",
]
